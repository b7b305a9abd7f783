"""Diff-based reconciliation of many-to-many association sets."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from recordkeeper.domain.mutations.outcomes import Reconciliation

if TYPE_CHECKING:
    from collections.abc import Set

    from recordkeeper.domain.model import AssociationSpec
    from recordkeeper.domain.ports import AssociationRepository

log = getLogger(__name__)


def plan_reconciliation[T](current: Set[T], desired: Set[T]) -> Reconciliation[T]:
    """Return the minimal delta turning ``current`` into ``desired``."""

    return Reconciliation(
        added=frozenset(desired - current),
        removed=frozenset(current - desired),
    )


class RelationshipReconciler:
    """Bring one association of one owner in line with a desired set.

    Only the delta is written: members present on both sides are never
    touched, so replaying the same desired set performs no writes at all.
    Runs inside whatever transaction the repository is bound to.
    """

    def __init__(self, associations: AssociationRepository) -> None:
        self._associations = associations

    def reconcile(
        self,
        association: AssociationSpec,
        left_id: int,
        desired_right_ids: Set[int],
    ) -> Reconciliation[int]:
        current = self._associations.right_ids(association, left_id)
        plan = plan_reconciliation(current, frozenset(desired_right_ids))
        if plan.is_noop:
            return plan
        if plan.removed:
            self._associations.remove(association, left_id, plan.removed)
        if plan.added:
            self._associations.add(association, left_id, plan.added)
        log.debug(
            "Reconciled %s.%s for %s: +%s -%s",
            association.owner,
            association.name,
            left_id,
            sorted(plan.added),
            sorted(plan.removed),
        )
        return plan
