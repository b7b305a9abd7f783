"""Domain model package."""

from __future__ import annotations

from .base import INITIAL_VERSION, VersionedEntity
from .enums import EntityKind, RuleMode
from .relations import (
    SCHOOL_ASSOCIATIONS,
    SCHOOL_DEPENDENCY_RULES,
    AssociationSpec,
    DependencyRule,
    association_for,
)
from .school import (
    ENTITY_CLASS_BY_KIND,
    Course,
    Department,
    Enrollment,
    Instructor,
    OfficeAssignment,
    Student,
    entity_class_for,
)

__all__ = [
    "ENTITY_CLASS_BY_KIND",
    "INITIAL_VERSION",
    "SCHOOL_ASSOCIATIONS",
    "SCHOOL_DEPENDENCY_RULES",
    "AssociationSpec",
    "Course",
    "Department",
    "DependencyRule",
    "Enrollment",
    "EntityKind",
    "Instructor",
    "OfficeAssignment",
    "RuleMode",
    "Student",
    "VersionedEntity",
    "association_for",
    "entity_class_for",
]
