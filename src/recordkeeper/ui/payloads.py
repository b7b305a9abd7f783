"""Render mutation outcomes as the JSON payloads callers receive."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from pydantic.alias_generators import to_camel

from recordkeeper.domain.model import VersionedEntity
from recordkeeper.domain.mutations import (
    Blocked,
    Committed,
    Conflict,
    Deletion,
    Fatal,
    NotFound,
    RelationshipSet,
)

if TYPE_CHECKING:
    from recordkeeper.domain.mutations import MutationOutcome


@dataclass(frozen=True, slots=True)
class RenderedOutcome:
    """Payload plus the HTTP status an HTTP front end would answer with."""

    status_code: HTTPStatus
    payload: dict[str, Any]


def entity_payload(entity: VersionedEntity) -> dict[str, Any]:
    """``{...entity, version}`` with camelCase keys and ISO dates."""

    return {to_camel(name): _jsonable(value) for name, value in entity.snapshot().items()}


def render(outcome: MutationOutcome, *, created: bool = False) -> RenderedOutcome:
    match outcome:
        case Committed(value=VersionedEntity() as entity):
            status = HTTPStatus.CREATED if created else HTTPStatus.OK
            return RenderedOutcome(status, entity_payload(entity))
        case Committed(value=RelationshipSet() as relationship):
            return RenderedOutcome(
                HTTPStatus.OK,
                {"leftId": relationship.left_id, "rightIds": sorted(relationship.right_ids)},
            )
        case Committed(value=Deletion() as deletion):
            payload: dict[str, Any] = {"message": deletion.message}
            if deletion.cascaded:
                payload["cascaded"] = {
                    str(kind): count for kind, count in deletion.cascaded.items()
                }
            return RenderedOutcome(HTTPStatus.OK, payload)
        case Conflict():
            return RenderedOutcome(
                HTTPStatus.CONFLICT,
                {"message": outcome.message, "current": entity_payload(outcome.current)},
            )
        case NotFound():
            return RenderedOutcome(HTTPStatus.NOT_FOUND, {"message": outcome.message})
        case Blocked():
            return RenderedOutcome(
                HTTPStatus.CONFLICT,
                {
                    "message": outcome.message,
                    "dependentKind": str(outcome.dependent_kind),
                    "count": outcome.count,
                },
            )
        case Fatal():
            return RenderedOutcome(HTTPStatus.INTERNAL_SERVER_ERROR, {"message": outcome.message})
        case _:
            raise TypeError(f"Cannot render outcome {outcome!r}")


def render_validation_error(error: Exception) -> RenderedOutcome:
    return RenderedOutcome(HTTPStatus.UNPROCESSABLE_ENTITY, {"message": str(error)})


def _jsonable(value: object) -> object:
    if isinstance(value, date):
        return value.isoformat()
    return value
