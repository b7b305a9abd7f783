"""Transactional orchestration of versioned writes, reconciliation and deletes.

Every public operation runs in exactly one unit of work. Sub-steps return
tagged outcomes; anything but ``Committed`` rolls the transaction back and is
handed to the caller unchanged. Exceptions are caught once, here, logged, and
reported as ``Fatal``.
"""

from __future__ import annotations

from collections import defaultdict
from logging import getLogger
from typing import TYPE_CHECKING

from recordkeeper.domain.model import (
    SCHOOL_DEPENDENCY_RULES,
    association_for,
    entity_class_for,
)
from recordkeeper.domain.mutations.guard import DeletionGuard, ensure_acyclic_rules
from recordkeeper.domain.mutations.outcomes import (
    Blocked,
    Committed,
    Deletion,
    Fatal,
    NotFound,
    RelationshipSet,
)
from recordkeeper.domain.mutations.reconciler import RelationshipReconciler

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Set

    from recordkeeper.domain.model import (
        AssociationSpec,
        DependencyRule,
        EntityKind,
        VersionedEntity,
    )
    from recordkeeper.domain.mutations.commands import (
        CreateCommand,
        DeleteCommand,
        ReplaceRelationshipCommand,
        UpdateCommand,
    )
    from recordkeeper.domain.mutations.outcomes import MutationOutcome
    from recordkeeper.domain.ports import MutationRepositories, MutationUnitOfWork

type UnitOfWorkFactory = Callable[[], MutationUnitOfWork]
type _Step = Callable[[MutationRepositories], MutationOutcome]

log = getLogger(__name__)


class MutationService:
    """Entry point for every mutation of school records."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        rules: Iterable[DependencyRule] = SCHOOL_DEPENDENCY_RULES,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._rules = tuple(rules)
        grouped: dict[EntityKind, list[DependencyRule]] = defaultdict(list)
        for rule in self._rules:
            grouped[rule.owner].append(rule)
        ensure_acyclic_rules(grouped)

    def load(self, kind: EntityKind, entity_id: int) -> MutationOutcome:
        """Fresh snapshot of a record, e.g. to re-decide after a ``Conflict``."""

        def step(repositories: MutationRepositories) -> MutationOutcome:
            loaded = repositories.store_for(kind).load(entity_id)
            if isinstance(loaded, NotFound):
                return loaded
            return Committed(value=loaded)

        return self._run(f"load {kind} {entity_id}", step)

    def create(self, command: CreateCommand) -> MutationOutcome:
        def step(repositories: MutationRepositories) -> MutationOutcome:
            entity = entity_class_for(command.kind)(**command.fields)
            written = repositories.store_for(command.kind).create(entity)
            entity_id = _require_assigned_id(written.value)
            missing = self._apply_dependents(
                repositories,
                command.kind,
                entity_id,
                command.relationships,
                command.office_location or None,
            )
            return missing or written

        return self._run(f"create {command.kind}", step)

    def update(self, command: UpdateCommand) -> MutationOutcome:
        def step(repositories: MutationRepositories) -> MutationOutcome:
            # an empty patch still bumps the version when dependents change
            written = repositories.store_for(command.kind).update(
                command.entity_id,
                command.patch,
                command.expected_version,
            )
            if not isinstance(written, Committed) or not command.touches_dependents:
                return written
            missing = self._apply_dependents(
                repositories,
                command.kind,
                command.entity_id,
                command.relationships,
                command.office_location,
            )
            return missing or written

        return self._run(
            f"update {command.kind} {command.entity_id}@{command.expected_version}", step
        )

    def replace_relationship(self, command: ReplaceRelationshipCommand) -> MutationOutcome:
        def step(repositories: MutationRepositories) -> MutationOutcome:
            owner = repositories.store_for(command.kind).load(command.left_id)
            if isinstance(owner, NotFound):
                return owner
            association = association_for(command.kind, command.name)
            missing = _missing_targets(repositories, association, command.desired_right_ids)
            if missing is not None:
                return missing
            change = RelationshipReconciler(repositories.associations).reconcile(
                association, command.left_id, command.desired_right_ids
            )
            return Committed(
                value=RelationshipSet(
                    kind=command.kind,
                    left_id=command.left_id,
                    name=command.name,
                    right_ids=command.desired_right_ids,
                    change=change,
                )
            )

        return self._run(f"replace {command.kind}.{command.name} of {command.left_id}", step)

    def delete(self, command: DeleteCommand) -> MutationOutcome:
        def step(repositories: MutationRepositories) -> MutationOutcome:
            guard = DeletionGuard(repositories.dependencies, self._rules)
            verdict = guard.check(command.kind, command.entity_id)
            if isinstance(verdict, Blocked):
                return verdict
            cascaded = guard.cascade(verdict)
            written = repositories.store_for(command.kind).delete(
                command.entity_id, command.expected_version
            )
            if not isinstance(written, Committed):
                return written
            return Committed(
                value=Deletion(kind=command.kind, entity_id=command.entity_id, cascaded=cascaded)
            )

        return self._run(
            f"delete {command.kind} {command.entity_id}@{command.expected_version}", step
        )

    def _apply_dependents(
        self,
        repositories: MutationRepositories,
        kind: EntityKind,
        entity_id: int,
        relationships: Mapping[str, Set[int]],
        office_location: str | None,
    ) -> NotFound | None:
        for name, desired in relationships.items():
            association = association_for(kind, name)
            missing = _missing_targets(repositories, association, desired)
            if missing is not None:
                return missing
            RelationshipReconciler(repositories.associations).reconcile(
                association, entity_id, desired
            )
        if office_location is not None:
            repositories.office_assignments.sync(entity_id, office_location)
        return None

    def _run(self, label: str, step: _Step) -> MutationOutcome:
        log.info("Mutation %s", label)
        try:
            with self._unit_of_work_factory() as uow:
                outcome = step(uow.repositories)
                if isinstance(outcome, Committed):
                    uow.commit()
                else:
                    uow.rollback()
        except Exception as exc:
            log.exception("Mutation %s failed", label)
            return Fatal(error=str(exc), error_type=type(exc).__name__)

        if not isinstance(outcome, Committed):
            log.info("Mutation %s rolled back: %s", label, outcome.message)
        return outcome


def _missing_targets(
    repositories: MutationRepositories,
    association: AssociationSpec,
    desired: Set[int],
) -> NotFound | None:
    if not desired:
        return None
    found = repositories.store_for(association.target).existing_ids(desired)
    missing = set(desired) - found
    if not missing:
        return None
    return NotFound(kind=association.target, ids=tuple(sorted(missing)))


def _require_assigned_id(entity: VersionedEntity) -> int:
    if entity.id is None:
        raise RuntimeError(f"{entity.kind} was stored without an id")
    return entity.id

