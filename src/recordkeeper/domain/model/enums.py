"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Discriminator for every persisted row kind, versioned or not."""

    STUDENT = "Student"
    INSTRUCTOR = "Instructor"
    COURSE = "Course"
    DEPARTMENT = "Department"

    # Dependent rows without a version of their own:
    ENROLLMENT = "Enrollment"
    OFFICE_ASSIGNMENT = "OfficeAssignment"
    COURSE_INSTRUCTOR = "CourseInstructor"


class RuleMode(StrEnum):
    """How a dependency rule reacts to a delete of the referenced row."""

    CASCADE = "cascade"
    BLOCK = "block"
