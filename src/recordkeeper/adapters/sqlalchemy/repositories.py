"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, func, insert, select, update

from recordkeeper.adapters.sqlalchemy.mappings import TABLE_BY_KIND, office_assignment_table
from recordkeeper.domain.model import INITIAL_VERSION, OfficeAssignment, VersionedEntity
from recordkeeper.domain.mutations.outcomes import Committed, Conflict, NotFound

if TYPE_CHECKING:
    from collections.abc import Mapping, Set

    from sqlalchemy import CursorResult, Table
    from sqlalchemy.orm import Session
    from sqlalchemy.sql import Executable

    from recordkeeper.domain.model import AssociationSpec, DependencyRule
    from recordkeeper.domain.mutations.outcomes import StoreWrite


class SqlAlchemyVersionedStore[TEntity: VersionedEntity]:
    """Optimistic-locking store for one versioned entity class.

    Writes are Core statements guarded by ``id`` and ``version`` so the check
    and the write are one atomic step in the database. Reads always refresh
    from the database and detach the result, so callers never hold a live
    ORM instance and nothing stale survives in the identity map.
    """

    def __init__(self, session: Session, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._kind = entity_cls.KIND
        self._table = TABLE_BY_KIND[self._kind]

    def load(self, entity_id: int) -> TEntity | NotFound:
        entity = self._read(entity_id)
        if entity is None:
            return NotFound(kind=self._kind, ids=(entity_id,))
        return entity

    def create(self, entity: TEntity) -> Committed[TEntity]:
        entity.version = INITIAL_VERSION
        self.session.add(entity)
        self.session.flush()
        self.session.expunge(entity)
        return Committed(value=entity)

    def update(
        self,
        entity_id: int,
        patch: Mapping[str, object],
        expected_version: int,
    ) -> StoreWrite[TEntity]:
        values: dict[str, Any] = dict(patch)
        values["version"] = self._table.c.version + 1
        stmt = (
            update(self._table)
            .where(self._table.c.id == entity_id)
            .where(self._table.c.version == expected_version)
            .values(values)
        )
        if self._rowcount(stmt) == 1:
            return Committed(value=self._read_existing(entity_id))
        return self._miss(entity_id, expected_version)

    def delete(
        self,
        entity_id: int,
        expected_version: int,
    ) -> Committed[int] | StoreWrite[TEntity]:
        stmt = (
            delete(self._table)
            .where(self._table.c.id == entity_id)
            .where(self._table.c.version == expected_version)
        )
        if self._rowcount(stmt) == 1:
            return Committed(value=entity_id)
        return self._miss(entity_id, expected_version)

    def existing_ids(self, entity_ids: Set[int]) -> set[int]:
        if not entity_ids:
            return set()
        stmt = select(self._table.c.id).where(self._table.c.id.in_(sorted(entity_ids)))
        return set(self.session.execute(stmt).scalars())

    def _miss(self, entity_id: int, expected_version: int) -> Conflict[TEntity] | NotFound:
        current = self._read(entity_id)
        if current is None:
            return NotFound(kind=self._kind, ids=(entity_id,))
        return Conflict(current=current, expected_version=expected_version)

    def _read(self, entity_id: int) -> TEntity | None:
        stmt = (
            select(self._entity_cls)
            .where(self._table.c.id == entity_id)
            .execution_options(populate_existing=True)
        )
        entity = self.session.execute(stmt).scalar_one_or_none()
        if entity is not None:
            self.session.expunge(entity)
        return entity

    def _read_existing(self, entity_id: int) -> TEntity:
        entity = self._read(entity_id)
        if entity is None:
            raise RuntimeError(f"{self._kind} {entity_id} vanished inside its own transaction")
        return entity

    def _rowcount(self, stmt: Executable) -> int:
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount


class SqlAlchemyAssociationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def right_ids(self, association: AssociationSpec, left_id: int) -> set[int]:
        table = TABLE_BY_KIND[association.link]
        stmt = select(table.c[association.right_field]).where(
            table.c[association.left_field] == left_id
        )
        return set(self.session.execute(stmt).scalars())

    def add(self, association: AssociationSpec, left_id: int, right_ids: Set[int]) -> None:
        if not right_ids:
            return
        table = TABLE_BY_KIND[association.link]
        rows = [
            {association.left_field: left_id, association.right_field: right_id}
            for right_id in sorted(right_ids)
        ]
        self.session.execute(insert(table), rows)

    def remove(self, association: AssociationSpec, left_id: int, right_ids: Set[int]) -> None:
        if not right_ids:
            return
        table = TABLE_BY_KIND[association.link]
        stmt = (
            delete(table)
            .where(table.c[association.left_field] == left_id)
            .where(table.c[association.right_field].in_(sorted(right_ids)))
        )
        self.session.execute(stmt)


class SqlAlchemyDependencyRepository:
    """Resolve dependency rules against the rule's dependent table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def count(self, rule: DependencyRule, owner_ids: Set[int]) -> int:
        if not owner_ids:
            return 0
        table = TABLE_BY_KIND[rule.dependent]
        stmt = (
            select(func.count())
            .select_from(table)
            .where(_referencing(table, rule).in_(sorted(owner_ids)))
        )
        return self.session.execute(stmt).scalar_one()

    def referencing_ids(self, rule: DependencyRule, owner_ids: Set[int]) -> set[int]:
        if not owner_ids:
            return set()
        table = TABLE_BY_KIND[rule.dependent]
        stmt = select(table.c.id).where(_referencing(table, rule).in_(sorted(owner_ids)))
        return set(self.session.execute(stmt).scalars())

    def delete(self, rule: DependencyRule, owner_ids: Set[int]) -> int:
        if not owner_ids:
            return 0
        table = TABLE_BY_KIND[rule.dependent]
        stmt = delete(table).where(_referencing(table, rule).in_(sorted(owner_ids)))
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount


class SqlAlchemyOfficeAssignmentRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, instructor_id: int) -> OfficeAssignment | None:
        stmt = (
            select(OfficeAssignment)
            .where(office_assignment_table.c.instructor_id == instructor_id)
            .execution_options(populate_existing=True)
        )
        assignment = self.session.execute(stmt).scalar_one_or_none()
        if assignment is not None:
            self.session.expunge(assignment)
        return assignment

    def sync(self, instructor_id: int, location: str) -> None:
        table = office_assignment_table
        location = location.strip()
        if not location:
            self.session.execute(delete(table).where(table.c.instructor_id == instructor_id))
            return
        stmt = (
            update(table)
            .where(table.c.instructor_id == instructor_id)
            .values(location=location)
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        if result.rowcount == 0:
            self.session.execute(
                insert(table).values(instructor_id=instructor_id, location=location)
            )


def _referencing(table: Table, rule: DependencyRule) -> Any:
    try:
        return table.c[rule.field]
    except KeyError:
        raise ValueError(f"{rule.dependent} has no column {rule.field!r}") from None
