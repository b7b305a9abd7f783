"""Declared associations and dependency rules between school records.

Nothing here is inferred from foreign keys: every many-to-many edge and every
delete rule is listed explicitly, and the mutation services only act on what
is declared.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from recordkeeper.domain.model.enums import EntityKind, RuleMode


@dataclass(frozen=True, slots=True, kw_only=True)
class AssociationSpec:
    """A many-to-many edge seen from one end.

    Rows live in the ``link`` table kind; ``left_field`` holds the owner id and
    ``right_field`` the target id. The pair is the whole state of a row.
    """

    owner: EntityKind
    name: str
    target: EntityKind
    link: EntityKind
    left_field: str
    right_field: str


@dataclass(frozen=True, slots=True, kw_only=True)
class DependencyRule:
    """``dependent`` rows reference ``owner`` rows through ``field``."""

    owner: EntityKind
    dependent: EntityKind
    field: str
    mode: RuleMode
    label: str = "referenced by"

    def describe(self, count: int) -> str:
        noun = self.dependent.lower()
        return f"{self.label} {count} {noun}{'' if count == 1 else 's'}"


SCHOOL_ASSOCIATIONS: Final[tuple[AssociationSpec, ...]] = (
    AssociationSpec(
        owner=EntityKind.INSTRUCTOR,
        name="courses",
        target=EntityKind.COURSE,
        link=EntityKind.COURSE_INSTRUCTOR,
        left_field="instructor_id",
        right_field="course_id",
    ),
    AssociationSpec(
        owner=EntityKind.COURSE,
        name="instructors",
        target=EntityKind.INSTRUCTOR,
        link=EntityKind.COURSE_INSTRUCTOR,
        left_field="course_id",
        right_field="instructor_id",
    ),
)

SCHOOL_DEPENDENCY_RULES: Final[tuple[DependencyRule, ...]] = (
    DependencyRule(
        owner=EntityKind.DEPARTMENT,
        dependent=EntityKind.COURSE,
        field="department_id",
        mode=RuleMode.CASCADE,
    ),
    DependencyRule(
        owner=EntityKind.COURSE,
        dependent=EntityKind.ENROLLMENT,
        field="course_id",
        mode=RuleMode.CASCADE,
    ),
    DependencyRule(
        owner=EntityKind.COURSE,
        dependent=EntityKind.COURSE_INSTRUCTOR,
        field="course_id",
        mode=RuleMode.CASCADE,
    ),
    DependencyRule(
        owner=EntityKind.STUDENT,
        dependent=EntityKind.ENROLLMENT,
        field="student_id",
        mode=RuleMode.CASCADE,
    ),
    DependencyRule(
        owner=EntityKind.INSTRUCTOR,
        dependent=EntityKind.DEPARTMENT,
        field="instructor_id",
        mode=RuleMode.BLOCK,
        label="administrator of",
    ),
    DependencyRule(
        owner=EntityKind.INSTRUCTOR,
        dependent=EntityKind.OFFICE_ASSIGNMENT,
        field="instructor_id",
        mode=RuleMode.CASCADE,
    ),
    DependencyRule(
        owner=EntityKind.INSTRUCTOR,
        dependent=EntityKind.COURSE_INSTRUCTOR,
        field="instructor_id",
        mode=RuleMode.CASCADE,
    ),
)


def association_for(
    owner: EntityKind,
    name: str,
    associations: tuple[AssociationSpec, ...] = SCHOOL_ASSOCIATIONS,
) -> AssociationSpec:
    for spec in associations:
        if spec.owner == owner and spec.name == name:
            return spec
    raise ValueError(f"{owner} has no association named {name!r}")
