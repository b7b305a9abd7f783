"""Pydantic models describing the JSON commands accepted by the front end."""

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING, Any, get_type_hints

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel, to_snake

from recordkeeper.domain.model import EntityKind, entity_class_for
from recordkeeper.domain.mutations import (
    CreateCommand,
    DeleteCommand,
    ReplaceRelationshipCommand,
    UpdateCommand,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


class CommandPayload(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class CreatePayload(CommandPayload):
    attributes: dict[str, Any]
    relationships: dict[str, list[int]] = Field(default_factory=dict)
    office_location: str | None = None

    def to_command(self, kind: EntityKind) -> CreateCommand:
        return CreateCommand(
            kind=kind,
            fields=coerce_fields(kind, self.attributes),
            relationships=self.relationships,
            office_location=self.office_location,
        )


class UpdatePayload(CommandPayload):
    id: int
    expected_version: int
    patch: dict[str, Any] = Field(default_factory=dict)
    relationships: dict[str, list[int]] = Field(default_factory=dict)
    office_location: str | None = None

    def to_command(self, kind: EntityKind) -> UpdateCommand:
        return UpdateCommand(
            kind=kind,
            entity_id=self.id,
            expected_version=self.expected_version,
            patch=coerce_fields(kind, self.patch),
            relationships=self.relationships,
            office_location=self.office_location,
        )


class ReplaceRelationshipPayload(CommandPayload):
    left_id: int
    desired_right_ids: list[int]

    def to_command(self, kind: EntityKind, name: str) -> ReplaceRelationshipCommand:
        return ReplaceRelationshipCommand(
            kind=kind,
            left_id=self.left_id,
            name=name,
            desired_right_ids=frozenset(self.desired_right_ids),
        )


class DeletePayload(CommandPayload):
    id: int
    expected_version: int

    def to_command(self, kind: EntityKind) -> DeleteCommand:
        return DeleteCommand(
            kind=kind,
            entity_id=self.id,
            expected_version=self.expected_version,
        )


def coerce_fields(kind: EntityKind, raw: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase keys to field names and parse values to the field types.

    Unknown keys pass through untouched so command validation can name them.
    """

    adapters = _field_adapters(EntityKind(kind))
    coerced: dict[str, Any] = {}
    for key, value in raw.items():
        name = to_snake(key)
        adapter = adapters.get(name)
        if adapter is None:
            coerced[key] = value
            continue
        coerced[name] = adapter.validate_python(value)
    return coerced


@cache
def _field_adapters(kind: EntityKind) -> dict[str, TypeAdapter[Any]]:
    cls = entity_class_for(kind)
    hints = get_type_hints(cls)
    names = cls.mutable_fields() | ({"id"} if cls.MANUAL_ID else set())
    return {name: TypeAdapter(hints[name]) for name in names}
