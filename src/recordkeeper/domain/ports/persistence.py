"""Ports for persisting versioned records, associations and dependents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from recordkeeper.domain.model import VersionedEntity

if TYPE_CHECKING:
    from collections.abc import Mapping, Set

    from recordkeeper.domain.model import AssociationSpec, DependencyRule, OfficeAssignment
    from recordkeeper.domain.mutations.outcomes import Committed, NotFound, StoreWrite


@runtime_checkable
class VersionedEntityStore[TEntity: VersionedEntity](Protocol):
    """Optimistic-locking read/write primitive for one entity kind.

    Every write is a single conditional statement on ``(id, version)``. A miss
    is disambiguated by a plain read: no row means ``NotFound``, a row means
    ``Conflict`` carrying that row. Entities handed out are detached
    snapshots.
    """

    def load(self, entity_id: int) -> TEntity | NotFound: ...

    def create(self, entity: TEntity) -> Committed[TEntity]: ...

    def update(
        self,
        entity_id: int,
        patch: Mapping[str, object],
        expected_version: int,
    ) -> StoreWrite[TEntity]: ...

    def delete(
        self,
        entity_id: int,
        expected_version: int,
    ) -> Committed[int] | StoreWrite[TEntity]: ...

    def existing_ids(self, entity_ids: Set[int]) -> set[int]: ...


@runtime_checkable
class AssociationRepository(Protocol):
    """Join rows of declared many-to-many edges."""

    def right_ids(self, association: AssociationSpec, left_id: int) -> set[int]: ...

    def add(self, association: AssociationSpec, left_id: int, right_ids: Set[int]) -> None: ...

    def remove(self, association: AssociationSpec, left_id: int, right_ids: Set[int]) -> None: ...


@runtime_checkable
class DependencyRepository(Protocol):
    """Counts, lists and removes rows that reference an owner through a rule."""

    def count(self, rule: DependencyRule, owner_ids: Set[int]) -> int: ...

    def referencing_ids(self, rule: DependencyRule, owner_ids: Set[int]) -> set[int]: ...

    def delete(self, rule: DependencyRule, owner_ids: Set[int]) -> int: ...


@runtime_checkable
class OfficeAssignmentRepository(Protocol):
    def get(self, instructor_id: int) -> OfficeAssignment | None: ...

    def sync(self, instructor_id: int, location: str) -> None:
        """Upsert ``location``; a blank location removes the assignment."""
        ...
