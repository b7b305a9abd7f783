"""Dependency-aware deletion: blocking rules refuse, cascading rules schedule."""

from __future__ import annotations

from collections import defaultdict
from logging import getLogger
from typing import TYPE_CHECKING

from recordkeeper.domain.model import SCHOOL_DEPENDENCY_RULES, RuleMode
from recordkeeper.domain.mutations.outcomes import Blocked, CascadeStep, Clear

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from recordkeeper.domain.model import DependencyRule, EntityKind
    from recordkeeper.domain.mutations.outcomes import GuardVerdict
    from recordkeeper.domain.ports import DependencyRepository

log = getLogger(__name__)


class CyclicDependencyRulesError(ValueError):
    """Cascading rules loop back onto a kind already being cascaded."""


class DeletionGuard:
    """Evaluate declared dependency rules for a record about to be deleted.

    Cascades are followed transitively: the rules of every cascaded kind are
    evaluated for the rows the cascade would remove, so a blocking rule deep
    in the chain still refuses the delete. ``Clear.cascades`` lists the steps
    deepest first, which is the order they must run in.
    """

    def __init__(
        self,
        dependencies: DependencyRepository,
        rules: Iterable[DependencyRule] = SCHOOL_DEPENDENCY_RULES,
    ) -> None:
        self._dependencies = dependencies
        self._rules_by_owner: dict[EntityKind, list[DependencyRule]] = defaultdict(list)
        for rule in rules:
            self._rules_by_owner[rule.owner].append(rule)
        ensure_acyclic_rules(self._rules_by_owner)

    def rules_for(self, kind: EntityKind) -> tuple[DependencyRule, ...]:
        return tuple(self._rules_by_owner.get(kind, ()))

    def check(self, kind: EntityKind, entity_id: int) -> GuardVerdict:
        steps: list[CascadeStep] = []
        blocked = self._visit(kind, frozenset({entity_id}), kind, entity_id, steps)
        if blocked is not None:
            log.info("Delete of %s %s blocked: %s", kind, entity_id, blocked.reason)
            return blocked
        return Clear(cascades=tuple(steps))

    def cascade(self, verdict: Clear) -> dict[EntityKind, int]:
        """Run the scheduled cascade deletes; return removed rows per kind."""

        removed: dict[EntityKind, int] = {}
        for step in verdict.cascades:
            count = self._dependencies.delete(step.rule, step.owner_ids)
            if count:
                removed[step.rule.dependent] = removed.get(step.rule.dependent, 0) + count
        return removed

    def _visit(
        self,
        kind: EntityKind,
        owner_ids: frozenset[int],
        root_kind: EntityKind,
        root_id: int,
        steps: list[CascadeStep],
    ) -> Blocked | None:
        rules = self.rules_for(kind)
        for rule in rules:
            if rule.mode is not RuleMode.BLOCK:
                continue
            count = self._dependencies.count(rule, owner_ids)
            if count:
                reason = rule.describe(count)
                if kind != root_kind:
                    reason = f"{reason} through a cascaded {kind.lower()}"
                return Blocked(
                    kind=root_kind,
                    entity_id=root_id,
                    dependent_kind=rule.dependent,
                    count=count,
                    reason=reason,
                )

        for rule in rules:
            if rule.mode is not RuleMode.CASCADE:
                continue
            if self.rules_for(rule.dependent):
                dependent_ids = frozenset(self._dependencies.referencing_ids(rule, owner_ids))
                if not dependent_ids:
                    continue
                blocked = self._visit(rule.dependent, dependent_ids, root_kind, root_id, steps)
                if blocked is not None:
                    return blocked
            elif not self._dependencies.count(rule, owner_ids):
                continue
            steps.append(CascadeStep(rule=rule, owner_ids=owner_ids))
        return None


def ensure_acyclic_rules(rules_by_owner: Mapping[EntityKind, Iterable[DependencyRule]]) -> None:
    visiting: set[EntityKind] = set()
    done: set[EntityKind] = set()

    def walk(kind: EntityKind) -> None:
        if kind in done:
            return
        if kind in visiting:
            raise CyclicDependencyRulesError(f"cascading rules loop through {kind}")
        visiting.add(kind)
        for rule in rules_by_owner.get(kind, ()):
            if rule.mode is RuleMode.CASCADE:
                walk(rule.dependent)
        visiting.discard(kind)
        done.add(kind)

    for owner in list(rules_by_owner):
        walk(owner)
