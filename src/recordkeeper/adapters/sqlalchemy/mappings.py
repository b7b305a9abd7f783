"""SQLAlchemy mapping metadata for the school records model."""

from __future__ import annotations

import logging
from functools import cache
from typing import Final

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    orm,
)

from recordkeeper.domain.model import (
    Course,
    Department,
    EntityKind,
    Enrollment,
    Instructor,
    OfficeAssignment,
    Student,
)

log = logging.getLogger(__name__)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _version_column() -> Column[int]:
    return Column("version", Integer, nullable=False, default=1)


def _version_check() -> CheckConstraint:
    return CheckConstraint("version >= 1", name="version_positive")


# Versioned records -----------------------------------------------------------

student_table = Table(
    "student",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("last_name", String(50), nullable=False),
    Column("first_mid_name", String(50), nullable=False),
    Column("enrollment_date", Date, nullable=False),
    _version_column(),
    _version_check(),
)

instructor_table = Table(
    "instructor",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("last_name", String(50), nullable=False),
    Column("first_mid_name", String(50), nullable=False),
    Column("hire_date", Date, nullable=False),
    _version_column(),
    _version_check(),
)

department_table = Table(
    "department",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(50), nullable=True),
    Column("budget", Numeric(19, 4, asdecimal=False), nullable=False),
    Column("start_date", Date, nullable=False),
    # administrator; deleting an instructor is refused while this is set
    Column("instructor_id", Integer, ForeignKey("instructor.id"), nullable=True),
    _version_column(),
    _version_check(),
)

course_table = Table(
    "course",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("title", String(50), nullable=True),
    Column("credits", Integer, nullable=False),
    Column(
        "department_id",
        Integer,
        ForeignKey("department.id"),
        nullable=False,
    ),
    _version_column(),
    _version_check(),
    CheckConstraint("credits >= 0 AND credits <= 5", name="credits_range"),
)

# Dependent rows --------------------------------------------------------------

enrollment_table = Table(
    "enrollment",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "course_id",
        Integer,
        ForeignKey("course.id"),
        nullable=False,
        index=True,
    ),
    Column(
        "student_id",
        Integer,
        ForeignKey("student.id"),
        nullable=False,
        index=True,
    ),
    Column("grade", Integer, nullable=True),
)

office_assignment_table = Table(
    "office_assignment",
    mapper_registry.metadata,
    Column(
        "instructor_id",
        Integer,
        ForeignKey("instructor.id"),
        primary_key=True,
    ),
    Column("location", String(50), nullable=False),
)

course_instructor_table = Table(
    "course_instructor",
    mapper_registry.metadata,
    Column(
        "course_id",
        Integer,
        ForeignKey("course.id"),
        primary_key=True,
    ),
    Column(
        "instructor_id",
        Integer,
        ForeignKey("instructor.id"),
        primary_key=True,
        index=True,
    ),
)


TABLE_BY_KIND: Final[dict[EntityKind, Table]] = {
    EntityKind.STUDENT: student_table,
    EntityKind.INSTRUCTOR: instructor_table,
    EntityKind.DEPARTMENT: department_table,
    EntityKind.COURSE: course_table,
    EntityKind.ENROLLMENT: enrollment_table,
    EntityKind.OFFICE_ASSIGNMENT: office_assignment_table,
    EntityKind.COURSE_INSTRUCTOR: course_instructor_table,
}


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model.

    No relationships are mapped: associations and dependents are reached
    through explicit statements so nothing is loaded or cascaded implicitly.
    """

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Student, student_table)
    mapper_registry.map_imperatively(Instructor, instructor_table)
    mapper_registry.map_imperatively(Department, department_table)
    mapper_registry.map_imperatively(Course, course_table)
    mapper_registry.map_imperatively(Enrollment, enrollment_table)
    mapper_registry.map_imperatively(OfficeAssignment, office_assignment_table)

    orm.configure_mappers()
    return mapper_registry

