from __future__ import annotations

import argparse
import json
import logging
import sys
from enum import IntEnum
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv
from pydantic import ValidationError

from recordkeeper.app import build_mutation_service
from recordkeeper.config import configure_logging
from recordkeeper.domain.model import ENTITY_CLASS_BY_KIND, EntityKind
from recordkeeper.domain.mutations import (
    Blocked,
    CommandValidationError,
    Committed,
    Conflict,
    Fatal,
    NotFound,
)
from recordkeeper.ui.payloads import render, render_validation_error
from recordkeeper.ui.schema import (
    CreatePayload,
    DeletePayload,
    ReplaceRelationshipPayload,
    UpdatePayload,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from recordkeeper.domain.mutations import MutationOutcome, MutationService
    from recordkeeper.ui.payloads import RenderedOutcome

log = logging.getLogger(__name__)


class ExitCode(IntEnum):
    COMMITTED = 0
    FATAL = 1
    VALIDATION = 2
    CONFLICT = 3
    NOT_FOUND = 4
    BLOCKED = 5


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apply guarded mutations to school records")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    kinds = sorted(str(kind) for kind in ENTITY_CLASS_BY_KIND)

    show = subparsers.add_parser("show", help="Print the current state of a record")
    show.add_argument("kind", choices=kinds)
    show.add_argument("id", type=int)

    for name, help_text in (
        ("create", "Create a record from {attributes, relationships, officeLocation}"),
        ("update", "Patch a record from {id, patch, expectedVersion, relationships}"),
        ("delete", "Delete a record from {id, expectedVersion}"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("kind", choices=kinds)
        _add_payload_argument(sub)

    replace = subparsers.add_parser(
        "replace",
        help="Replace an association from {leftId, desiredRightIds}",
    )
    replace.add_argument("kind", choices=kinds)
    replace.add_argument("association", help="Association name, e.g. courses")
    _add_payload_argument(replace)

    return parser.parse_args(list(argv))


def _add_payload_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--payload",
        type=str,
        default="-",
        help="JSON command payload, or '-' to read it from stdin (default)",
    )


def _read_payload(raw: str) -> Any:
    text = sys.stdin.read() if raw == "-" else raw
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise CommandValidationError(f"Payload is not valid JSON: {exc.msg}") from exc


type _Request = Callable[[MutationService], MutationOutcome]


def _prepare(args: argparse.Namespace) -> tuple[_Request, bool]:
    """Validate the command up front; the returned request runs it later."""

    kind = EntityKind(args.kind)
    if args.command == "show":
        entity_id: int = args.id
        return (lambda service: service.load(kind, entity_id)), False

    payload = _read_payload(args.payload)
    if args.command == "create":
        create = CreatePayload.model_validate(payload).to_command(kind)
        return (lambda service: service.create(create)), True
    if args.command == "update":
        update = UpdatePayload.model_validate(payload).to_command(kind)
        return (lambda service: service.update(update)), False
    if args.command == "replace":
        replace = ReplaceRelationshipPayload.model_validate(payload).to_command(
            kind, args.association
        )
        return (lambda service: service.replace_relationship(replace)), False
    if args.command == "delete":
        delete = DeletePayload.model_validate(payload).to_command(kind)
        return (lambda service: service.delete(delete)), False
    raise CommandValidationError(f"Unsupported command: {args.command}")


def exit_code_for(outcome: MutationOutcome) -> ExitCode:
    match outcome:
        case Committed():
            return ExitCode.COMMITTED
        case Conflict():
            return ExitCode.CONFLICT
        case NotFound():
            return ExitCode.NOT_FOUND
        case Blocked():
            return ExitCode.BLOCKED
        case Fatal():
            return ExitCode.FATAL
        case _:
            raise TypeError(f"Unexpected outcome {outcome!r}")


def _emit(rendered: RenderedOutcome) -> None:
    sys.stdout.write(json.dumps(rendered.payload, indent=2, sort_keys=True) + "\n")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        request, created = _prepare(parsed_args)
        outcome = request(build_mutation_service())
    except (CommandValidationError, ValidationError) as exc:
        log.warning("Rejected %s command: %s", parsed_args.command, exc)
        _emit(render_validation_error(exc))
        sys.exit(ExitCode.VALIDATION)
    except Exception:
        log.exception("Fatal error before the mutation ran")
        sys.exit(ExitCode.FATAL)

    _emit(render(outcome, created=created))
    sys.exit(exit_code_for(outcome))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point: load ``.env`` and run ``main``."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
