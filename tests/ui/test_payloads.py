from __future__ import annotations

from datetime import date
from http import HTTPStatus

import pytest

from recordkeeper.domain.model import Department, EntityKind, Student
from recordkeeper.domain.mutations import (
    Blocked,
    Committed,
    Conflict,
    Deletion,
    Fatal,
    NotFound,
    Reconciliation,
    RelationshipSet,
)
from recordkeeper.ui.payloads import entity_payload, render, render_validation_error


def _department(**overrides: object) -> Department:
    values: dict[str, object] = {
        "id": 1,
        "version": 4,
        "name": "English",
        "budget": 1200.0,
        "start_date": date(2007, 9, 1),
    }
    values.update(overrides)
    return Department(**values)  # type: ignore[arg-type]


def test_entity_payload_uses_camel_case_and_iso_dates() -> None:
    student = Student(
        id=7,
        version=2,
        last_name="Li",
        first_mid_name="Yan",
        enrollment_date=date(2012, 9, 1),
    )

    assert entity_payload(student) == {
        "id": 7,
        "version": 2,
        "lastName": "Li",
        "firstMidName": "Yan",
        "enrollmentDate": "2012-09-01",
    }


def test_committed_entity_renders_created_or_ok() -> None:
    outcome = Committed(value=_department())

    assert render(outcome, created=True).status_code is HTTPStatus.CREATED
    rendered = render(outcome)
    assert rendered.status_code is HTTPStatus.OK
    assert rendered.payload["budget"] == 1200.0
    assert rendered.payload["instructorId"] is None


def test_relationship_set_lists_sorted_right_ids() -> None:
    outcome = Committed(
        value=RelationshipSet(
            kind=EntityKind.INSTRUCTOR,
            left_id=9,
            name="courses",
            right_ids=frozenset({103, 102}),
            change=Reconciliation(added=frozenset({103}), removed=frozenset({101})),
        )
    )

    assert render(outcome).payload == {"leftId": 9, "rightIds": [102, 103]}


def test_deletion_reports_cascaded_rows_per_kind() -> None:
    plain = render(Committed(value=Deletion(kind=EntityKind.STUDENT, entity_id=3)))
    cascaded = render(
        Committed(
            value=Deletion(
                kind=EntityKind.DEPARTMENT,
                entity_id=1,
                cascaded={EntityKind.COURSE: 2, EntityKind.ENROLLMENT: 5},
            )
        )
    )

    assert plain.payload == {"message": "Student deleted successfully"}
    assert cascaded.payload == {
        "message": "Department deleted successfully",
        "cascaded": {"Course": 2, "Enrollment": 5},
    }


def test_conflict_carries_the_current_row() -> None:
    rendered = render(Conflict(current=_department(), expected_version=3))

    assert rendered.status_code is HTTPStatus.CONFLICT
    assert rendered.payload["current"]["version"] == 4
    assert rendered.payload["message"] == (
        "Department has been modified by another user. "
        "Expected version 3, but current version is 4."
    )


def test_not_found_blocked_and_fatal_statuses() -> None:
    missing = render(NotFound(kind=EntityKind.COURSE, ids=(998, 999)))
    blocked = render(
        Blocked(
            kind=EntityKind.INSTRUCTOR,
            entity_id=9,
            dependent_kind=EntityKind.DEPARTMENT,
            count=1,
            reason="administrator of 1 department",
        )
    )
    fatal = render(Fatal(error="database is locked", error_type="OperationalError"))

    assert missing.status_code is HTTPStatus.NOT_FOUND
    assert missing.payload == {"message": "Course with IDs 998, 999 not found"}
    assert blocked.status_code is HTTPStatus.CONFLICT
    assert blocked.payload == {
        "message": "Cannot delete Instructor 9: administrator of 1 department.",
        "dependentKind": "Department",
        "count": 1,
    }
    assert fatal.status_code is HTTPStatus.INTERNAL_SERVER_ERROR
    assert fatal.payload == {"message": "OperationalError: database is locked"}


def test_validation_errors_render_unprocessable() -> None:
    rendered = render_validation_error(ValueError("update changes nothing"))

    assert rendered.status_code is HTTPStatus.UNPROCESSABLE_ENTITY
    assert rendered.payload == {"message": "update changes nothing"}


def test_unknown_outcome_is_rejected() -> None:
    with pytest.raises(TypeError):
        render(object())  # type: ignore[arg-type]
