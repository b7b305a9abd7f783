"""School records: the versioned aggregates and their dependent rows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date  # noqa: TC003  # resolved at runtime by field coercion
from typing import ClassVar

from recordkeeper.domain.model.base import VersionedEntity
from recordkeeper.domain.model.enums import EntityKind


@dataclass(eq=False, kw_only=True)
class Student(VersionedEntity):
    KIND: ClassVar[EntityKind] = EntityKind.STUDENT

    last_name: str
    first_mid_name: str
    enrollment_date: date


@dataclass(eq=False, kw_only=True)
class Instructor(VersionedEntity):
    KIND: ClassVar[EntityKind] = EntityKind.INSTRUCTOR

    last_name: str
    first_mid_name: str
    hire_date: date


@dataclass(eq=False, kw_only=True)
class Department(VersionedEntity):
    """Department; ``instructor_id`` points at its administrator, if any."""

    KIND: ClassVar[EntityKind] = EntityKind.DEPARTMENT

    name: str | None = None
    budget: float
    start_date: date
    instructor_id: int | None = None


@dataclass(eq=False, kw_only=True)
class Course(VersionedEntity):
    """Course numbers are assigned by the registrar, never generated."""

    KIND: ClassVar[EntityKind] = EntityKind.COURSE
    MANUAL_ID: ClassVar[bool] = True

    title: str | None = None
    credits: int
    department_id: int


@dataclass(eq=False, kw_only=True)
class Enrollment:
    """A student taking a course. Owned by both ends, no version of its own."""

    id: int | None = None
    course_id: int
    student_id: int
    grade: int | None = None


@dataclass(eq=False, kw_only=True)
class OfficeAssignment:
    """One-to-one child of an instructor, keyed by the instructor id."""

    instructor_id: int
    location: str


ENTITY_CLASS_BY_KIND: dict[EntityKind, type[VersionedEntity]] = {
    EntityKind.STUDENT: Student,
    EntityKind.INSTRUCTOR: Instructor,
    EntityKind.DEPARTMENT: Department,
    EntityKind.COURSE: Course,
}


def entity_class_for(kind: EntityKind) -> type[VersionedEntity]:
    try:
        return ENTITY_CLASS_BY_KIND[kind]
    except KeyError:
        raise ValueError(f"{kind} is not a versioned entity kind") from None
