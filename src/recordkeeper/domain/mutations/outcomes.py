"""Tagged outcomes returned by every layer of the mutation services.

Expected business states (a stale version, a missing row, a dependency that
forbids a delete) travel as values. Only failures nobody anticipated travel
as exceptions, and the service boundary turns those into ``Fatal``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from recordkeeper.domain.model import DependencyRule, EntityKind, VersionedEntity


class OutcomeStatus(StrEnum):
    COMMITTED = "committed"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    BLOCKED = "blocked"
    FATAL = "fatal"
    CLEAR = "clear"


@dataclass(frozen=True, kw_only=True)
class Committed[T]:
    """The write was applied; ``value`` is what the caller should see now."""

    value: T
    status: Literal[OutcomeStatus.COMMITTED] = OutcomeStatus.COMMITTED


@dataclass(frozen=True, kw_only=True)
class Conflict[TEntity: VersionedEntity]:
    """The caller's version token is stale.

    ``current`` is the persisted row as it is now (the winner's values), not
    the losing patch.
    """

    current: TEntity
    expected_version: int
    status: Literal[OutcomeStatus.CONFLICT] = OutcomeStatus.CONFLICT

    @property
    def message(self) -> str:
        return (
            f"{self.current.kind} has been modified by another user. "
            f"Expected version {self.expected_version}, "
            f"but current version is {self.current.version}."
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class NotFound:
    kind: EntityKind
    ids: tuple[int, ...]
    status: Literal[OutcomeStatus.NOT_FOUND] = OutcomeStatus.NOT_FOUND

    @property
    def message(self) -> str:
        if len(self.ids) == 1:
            return f"{self.kind} with ID {self.ids[0]} not found"
        listed = ", ".join(str(entity_id) for entity_id in self.ids)
        return f"{self.kind} with IDs {listed} not found"


@dataclass(frozen=True, slots=True, kw_only=True)
class Blocked:
    """A blocking dependency rule refused the delete."""

    kind: EntityKind
    entity_id: int
    dependent_kind: EntityKind
    count: int
    reason: str
    status: Literal[OutcomeStatus.BLOCKED] = OutcomeStatus.BLOCKED

    @property
    def message(self) -> str:
        return f"Cannot delete {self.kind} {self.entity_id}: {self.reason}."


@dataclass(frozen=True, slots=True, kw_only=True)
class Fatal:
    """Storage or infrastructure failure; the transaction was rolled back."""

    error: str
    error_type: str
    status: Literal[OutcomeStatus.FATAL] = OutcomeStatus.FATAL

    @property
    def message(self) -> str:
        return f"{self.error_type}: {self.error}"


@dataclass(frozen=True, slots=True, kw_only=True)
class CascadeStep:
    """Delete the ``rule.dependent`` rows that reference ``owner_ids``."""

    rule: DependencyRule
    owner_ids: frozenset[int]


@dataclass(frozen=True, slots=True, kw_only=True)
class Clear:
    """No blocking rule applies. ``cascades`` are ordered deepest first."""

    cascades: tuple[CascadeStep, ...] = ()
    status: Literal[OutcomeStatus.CLEAR] = OutcomeStatus.CLEAR


@dataclass(frozen=True, kw_only=True)
class Reconciliation[T]:
    """Minimal delta between a persisted and a desired association set."""

    added: frozenset[T] = frozenset()
    removed: frozenset[T] = frozenset()

    @property
    def is_noop(self) -> bool:
        return not self.added and not self.removed


@dataclass(frozen=True, slots=True, kw_only=True)
class RelationshipSet:
    """Association state after a committed replace."""

    kind: EntityKind
    left_id: int
    name: str
    right_ids: frozenset[int]
    change: Reconciliation[int] = field(default_factory=Reconciliation)


@dataclass(frozen=True, slots=True, kw_only=True)
class Deletion:
    kind: EntityKind
    entity_id: int
    cascaded: dict[EntityKind, int] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return f"{self.kind} deleted successfully"


type StoreWrite[TEntity: VersionedEntity] = Committed[TEntity] | Conflict[TEntity] | NotFound
type GuardVerdict = Clear | Blocked
type MutationOutcome = Committed[Any] | Conflict[Any] | NotFound | Blocked | Fatal
