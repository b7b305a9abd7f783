from __future__ import annotations

import io
import json
from datetime import date
from typing import TYPE_CHECKING, Any

import pytest

from recordkeeper.domain.model import Department, EntityKind, Instructor, Student
from recordkeeper.domain.mutations import MutationService
from recordkeeper.ui import cli
from recordkeeper.ui.cli import ExitCode
from tests.helpers.fakes import FakeMutationUnitOfWork, fake_repositories

if TYPE_CHECKING:
    from recordkeeper.domain.ports import MutationRepositories


@pytest.fixture
def repositories() -> MutationRepositories:
    repositories = fake_repositories(
        students=[
            Student(
                id=1,
                version=2,
                last_name="Alexander",
                first_mid_name="Carson",
                enrollment_date=date(2010, 9, 1),
            )
        ],
        instructors=[
            Instructor(
                id=9,
                last_name="Abercrombie",
                first_mid_name="Kim",
                hire_date=date(1995, 3, 11),
            )
        ],
        departments=[
            Department(id=1, name="English", budget=1000.0, start_date=date(2007, 9, 1))
        ],
    )
    repositories.dependencies.seed(  # type: ignore[attr-defined]
        EntityKind.DEPARTMENT, {"id": 1, "instructor_id": 9}
    )
    return repositories


@pytest.fixture
def built(
    monkeypatch: pytest.MonkeyPatch,
    repositories: MutationRepositories,
) -> list[MutationService]:
    services: list[MutationService] = []

    def fake_build() -> MutationService:
        service = MutationService(lambda: FakeMutationUnitOfWork(repositories))
        services.append(service)
        return service

    monkeypatch.setattr(cli, "build_mutation_service", fake_build)
    return services


def _run(argv: list[str], capsys: pytest.CaptureFixture[str]) -> tuple[int, dict[str, Any]]:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    out = capsys.readouterr().out
    code = excinfo.value.code
    assert isinstance(code, int)
    return code, json.loads(out) if out else {}


def test_show_prints_the_record(
    built: list[MutationService],
    capsys: pytest.CaptureFixture[str],
) -> None:
    code, payload = _run(["show", "Student", "1"], capsys)

    assert code == ExitCode.COMMITTED
    assert payload["lastName"] == "Alexander"
    assert payload["version"] == 2
    assert payload["enrollmentDate"] == "2010-09-01"


def test_show_missing_record_exits_not_found(
    built: list[MutationService],
    capsys: pytest.CaptureFixture[str],
) -> None:
    code, payload = _run(["show", "Student", "5"], capsys)

    assert code == ExitCode.NOT_FOUND
    assert payload == {"message": "Student with ID 5 not found"}


def test_create_reads_payload_from_stdin(
    built: list[MutationService],
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    repositories: MutationRepositories,
) -> None:
    body = {
        "attributes": {
            "lastName": "Olivetto",
            "firstMidName": "Nino",
            "enrollmentDate": "2011-09-01",
        }
    }
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(body)))

    code, payload = _run(["create", "Student"], capsys)

    assert code == ExitCode.COMMITTED
    assert payload["id"] == 2
    assert payload["version"] == 1
    stored = repositories.students.load(2)
    assert isinstance(stored, Student)
    assert stored.enrollment_date == date(2011, 9, 1)


def test_stale_update_exits_conflict_with_current_row(
    built: list[MutationService],
    capsys: pytest.CaptureFixture[str],
) -> None:
    body = json.dumps({"id": 1, "expectedVersion": 1, "patch": {"lastName": "Alexandra"}})

    code, payload = _run(["update", "Student", "--payload", body], capsys)

    assert code == ExitCode.CONFLICT
    assert payload["current"]["lastName"] == "Alexander"
    assert payload["current"]["version"] == 2


def test_blocked_delete_exits_blocked(
    built: list[MutationService],
    capsys: pytest.CaptureFixture[str],
) -> None:
    body = json.dumps({"id": 9, "expectedVersion": 1})

    code, payload = _run(["delete", "Instructor", "--payload", body], capsys)

    assert code == ExitCode.BLOCKED
    assert payload["dependentKind"] == "Department"
    assert payload["count"] == 1


def test_replace_with_unknown_course_exits_not_found(
    built: list[MutationService],
    capsys: pytest.CaptureFixture[str],
) -> None:
    body = json.dumps({"leftId": 9, "desiredRightIds": [1045]})

    code, payload = _run(["replace", "Instructor", "courses", "--payload", body], capsys)

    assert code == ExitCode.NOT_FOUND
    assert payload == {"message": "Course with ID 1045 not found"}


@pytest.mark.parametrize(
    "argv",
    [
        ["update", "Student", "--payload", "{not json"],
        [
            "update",
            "Student",
            "--payload",
            json.dumps({"id": 1, "expectedVersion": 0, "patch": {"lastName": "X"}}),
        ],
        ["update", "Student", "--payload", json.dumps({"id": 1, "expectedVersion": 2})],
        ["delete", "Student", "--payload", json.dumps({"id": 1})],
    ],
    ids=["bad-json", "zero-version", "empty-update", "missing-version"],
)
def test_invalid_commands_exit_before_building_the_service(
    argv: list[str],
    built: list[MutationService],
    capsys: pytest.CaptureFixture[str],
) -> None:
    code, payload = _run(argv, capsys)

    assert code == ExitCode.VALIDATION
    assert payload["message"]
    assert built == []


def test_startup_failure_exits_fatal(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    def broken_build() -> MutationService:
        raise RuntimeError("no database")

    monkeypatch.setattr(cli, "build_mutation_service", broken_build)

    code, payload = _run(["show", "Student", "1"], capsys)

    assert code == ExitCode.FATAL
    assert payload == {}


def test_unknown_kind_is_rejected_by_argparse(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["show", "Enrollment", "1"])

    assert excinfo.value.code == 2
    assert "invalid choice" in capsys.readouterr().err
