"""In-memory fakes for the mutation ports."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from typing import TYPE_CHECKING, Literal

from recordkeeper.domain.model import (
    Course,
    Department,
    EntityKind,
    Instructor,
    OfficeAssignment,
    Student,
    VersionedEntity,
)
from recordkeeper.domain.mutations import Committed, Conflict, NotFound
from recordkeeper.domain.ports import (
    AssociationRepository,
    DependencyRepository,
    MutationRepositories,
    OfficeAssignmentRepository,
    VersionedEntityStore,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Set
    from types import TracebackType

    from recordkeeper.domain.model import AssociationSpec, DependencyRule
    from recordkeeper.domain.mutations import StoreWrite


class FakeAssociationRepository(AssociationRepository):
    """Stores link rows as ``{field: id}`` dicts and records every write."""

    def __init__(self) -> None:
        self.rows: dict[EntityKind, list[dict[str, int]]] = defaultdict(list)
        self.writes: list[tuple[str, int, frozenset[int]]] = []

    def seed(self, association: AssociationSpec, left_id: int, right_ids: Iterable[int]) -> None:
        for right_id in right_ids:
            self.rows[association.link].append(
                {association.left_field: left_id, association.right_field: right_id}
            )

    def right_ids(self, association: AssociationSpec, left_id: int) -> set[int]:
        return {
            row[association.right_field]
            for row in self.rows[association.link]
            if row[association.left_field] == left_id
        }

    def add(self, association: AssociationSpec, left_id: int, right_ids: Set[int]) -> None:
        self.writes.append(("add", left_id, frozenset(right_ids)))
        self.seed(association, left_id, sorted(right_ids))

    def remove(self, association: AssociationSpec, left_id: int, right_ids: Set[int]) -> None:
        self.writes.append(("remove", left_id, frozenset(right_ids)))
        self.rows[association.link] = [
            row
            for row in self.rows[association.link]
            if not (
                row[association.left_field] == left_id
                and row[association.right_field] in right_ids
            )
        ]


class FakeDependencyRepository(DependencyRepository):
    """Dependent rows keyed by kind; each row is a ``{field: id}`` dict."""

    def __init__(self) -> None:
        self.rows: dict[EntityKind, list[dict[str, int]]] = defaultdict(list)
        self.deleted: list[tuple[EntityKind, frozenset[int]]] = []

    def seed(self, kind: EntityKind, *rows: dict[str, int]) -> None:
        self.rows[kind].extend(rows)

    def count(self, rule: DependencyRule, owner_ids: Set[int]) -> int:
        return len(self._matching(rule, owner_ids))

    def referencing_ids(self, rule: DependencyRule, owner_ids: Set[int]) -> set[int]:
        return {row["id"] for row in self._matching(rule, owner_ids)}

    def delete(self, rule: DependencyRule, owner_ids: Set[int]) -> int:
        matching = self._matching(rule, owner_ids)
        self.rows[rule.dependent] = [
            row for row in self.rows[rule.dependent] if row not in matching
        ]
        self.deleted.append((rule.dependent, frozenset(owner_ids)))
        return len(matching)

    def _matching(self, rule: DependencyRule, owner_ids: Set[int]) -> list[dict[str, int]]:
        return [row for row in self.rows[rule.dependent] if row.get(rule.field) in owner_ids]


class FakeVersionedStore[TEntity: VersionedEntity](VersionedEntityStore[TEntity]):
    """Dict-backed store applying the same compare-and-set rules as the database."""

    def __init__(self, kind: EntityKind, *entities: TEntity) -> None:
        self.kind = kind
        self.entities: dict[int, TEntity] = {}
        for entity in entities:
            assert entity.id is not None
            self.entities[entity.id] = entity
        self.fail_with: Exception | None = None

    def load(self, entity_id: int) -> TEntity | NotFound:
        self._maybe_fail()
        entity = self.entities.get(entity_id)
        if entity is None:
            return NotFound(kind=self.kind, ids=(entity_id,))
        return replace(entity)

    def create(self, entity: TEntity) -> Committed[TEntity]:
        self._maybe_fail()
        if entity.id is None:
            entity.id = max(self.entities, default=0) + 1
        entity.version = 1
        self.entities[entity.id] = replace(entity)
        return Committed(value=entity)

    def update(
        self,
        entity_id: int,
        patch: Mapping[str, object],
        expected_version: int,
    ) -> StoreWrite[TEntity]:
        self._maybe_fail()
        current = self.entities.get(entity_id)
        if current is None:
            return NotFound(kind=self.kind, ids=(entity_id,))
        if current.version != expected_version:
            return Conflict(current=replace(current), expected_version=expected_version)
        updated = replace(current, **patch, version=current.version + 1)  # type: ignore[arg-type]
        self.entities[entity_id] = updated
        return Committed(value=replace(updated))

    def delete(
        self,
        entity_id: int,
        expected_version: int,
    ) -> Committed[int] | StoreWrite[TEntity]:
        self._maybe_fail()
        current = self.entities.get(entity_id)
        if current is None:
            return NotFound(kind=self.kind, ids=(entity_id,))
        if current.version != expected_version:
            return Conflict(current=replace(current), expected_version=expected_version)
        del self.entities[entity_id]
        return Committed(value=entity_id)

    def existing_ids(self, entity_ids: Set[int]) -> set[int]:
        return set(entity_ids) & set(self.entities)

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with


class FakeOfficeAssignmentRepository(OfficeAssignmentRepository):
    def __init__(self) -> None:
        self.locations: dict[int, str] = {}

    def get(self, instructor_id: int) -> OfficeAssignment | None:
        location = self.locations.get(instructor_id)
        if location is None:
            return None
        return OfficeAssignment(instructor_id=instructor_id, location=location)

    def sync(self, instructor_id: int, location: str) -> None:
        if location.strip():
            self.locations[instructor_id] = location.strip()
        else:
            self.locations.pop(instructor_id, None)


def fake_repositories(
    *,
    students: Iterable[Student] = (),
    instructors: Iterable[Instructor] = (),
    courses: Iterable[Course] = (),
    departments: Iterable[Department] = (),
) -> MutationRepositories:
    return MutationRepositories(
        students=FakeVersionedStore(EntityKind.STUDENT, *students),
        instructors=FakeVersionedStore(EntityKind.INSTRUCTOR, *instructors),
        courses=FakeVersionedStore(EntityKind.COURSE, *courses),
        departments=FakeVersionedStore(EntityKind.DEPARTMENT, *departments),
        associations=FakeAssociationRepository(),
        dependencies=FakeDependencyRepository(),
        office_assignments=FakeOfficeAssignmentRepository(),
    )


class FakeMutationUnitOfWork:
    """Records commit/rollback calls instead of touching a database.

    Writes to the fakes are not undone on rollback; tests assert on the
    recorded calls instead.
    """

    def __init__(self, repositories: MutationRepositories) -> None:
        self._repositories = repositories
        self.committed = False
        self.rolled_back = False

    @property
    def repositories(self) -> MutationRepositories:
        return self._repositories

    def __enter__(self) -> FakeMutationUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True
