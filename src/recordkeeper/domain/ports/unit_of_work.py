"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from recordkeeper.domain.model import EntityKind

if TYPE_CHECKING:
    from types import TracebackType

    from recordkeeper.domain.model import Course, Department, Instructor, Student
    from recordkeeper.domain.ports.persistence import (
        AssociationRepository,
        DependencyRepository,
        OfficeAssignmentRepository,
        VersionedEntityStore,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...  # the repo list itself should be immutable

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class MutationRepositories(RepositoryCollection):
    """Repositories one mutation needs, all bound to the same transaction."""

    students: VersionedEntityStore[Student]
    instructors: VersionedEntityStore[Instructor]
    courses: VersionedEntityStore[Course]
    departments: VersionedEntityStore[Department]
    associations: AssociationRepository
    dependencies: DependencyRepository
    office_assignments: OfficeAssignmentRepository

    def store_for(self, kind: EntityKind) -> VersionedEntityStore[Any]:
        match kind:
            case EntityKind.STUDENT:
                return self.students
            case EntityKind.INSTRUCTOR:
                return self.instructors
            case EntityKind.COURSE:
                return self.courses
            case EntityKind.DEPARTMENT:
                return self.departments
            case _:
                raise ValueError(f"{kind} has no versioned store")


type MutationUnitOfWork = UnitOfWork[MutationRepositories]
