"""Mutation commands and their caller-contract validation.

A command is validated when it is built, before any storage call. Violations
raise ``CommandValidationError``; they are caller bugs, not business states,
so they never reach the service as tagged outcomes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from recordkeeper.domain.model import (
    EntityKind,
    VersionedEntity,
    association_for,
    entity_class_for,
)


class CommandValidationError(ValueError):
    """A command violates the caller contract (bad version, unknown field, ...)."""


def _entity_class(kind: EntityKind) -> type[VersionedEntity]:
    try:
        return entity_class_for(EntityKind(kind))
    except ValueError as exc:
        raise CommandValidationError(str(exc)) from exc


def _require_id(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise CommandValidationError(f"{label} must be a positive integer, got {value!r}")
    return value


def _require_version(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise CommandValidationError(
            f"expected_version must be a positive integer, got {value!r}"
        )
    return value


def _check_patch_fields(cls: type[VersionedEntity], names: Iterable[str]) -> None:
    unknown = sorted(set(names) - cls.mutable_fields())
    if unknown:
        raise CommandValidationError(
            f"{cls.KIND} does not accept field(s) {', '.join(unknown)}"
        )


def _freeze_relationships(
    kind: EntityKind,
    relationships: Mapping[str, Iterable[int]],
) -> Mapping[str, frozenset[int]]:
    frozen: dict[str, frozenset[int]] = {}
    for name, right_ids in relationships.items():
        try:
            association_for(kind, name)
        except ValueError as exc:
            raise CommandValidationError(str(exc)) from exc
        frozen[name] = _freeze_ids(right_ids, f"{kind}.{name}")
    return MappingProxyType(frozen)


def _freeze_ids(right_ids: Iterable[int], label: str) -> frozenset[int]:
    if isinstance(right_ids, (str, bytes)):
        raise CommandValidationError(f"{label} must be a collection of ids")
    return frozenset(_require_id(right_id, f"{label} member") for right_id in right_ids)


def _check_office(kind: EntityKind, office_location: str | None) -> None:
    if office_location is not None and kind != EntityKind.INSTRUCTOR:
        raise CommandValidationError(f"{kind} has no office assignment")


@dataclass(frozen=True, slots=True, kw_only=True)
class CreateCommand:
    """Create a record at version 1, optionally with its initial associations."""

    kind: EntityKind
    fields: Mapping[str, Any]
    relationships: Mapping[str, frozenset[int]] = field(default_factory=dict)
    office_location: str | None = None

    def __post_init__(self) -> None:
        cls = _entity_class(self.kind)
        object.__setattr__(self, "kind", cls.KIND)
        names = set(self.fields)
        if cls.MANUAL_ID:
            if "id" not in names:
                raise CommandValidationError(f"{cls.KIND} requires a caller-assigned id")
            _require_id(self.fields["id"], "id")
            names.discard("id")
        _check_patch_fields(cls, names)
        missing = sorted(cls.required_fields() - names)
        if missing:
            raise CommandValidationError(
                f"{cls.KIND} is missing required field(s) {', '.join(missing)}"
            )
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(
            self, "relationships", _freeze_relationships(cls.KIND, self.relationships)
        )
        _check_office(cls.KIND, self.office_location)


@dataclass(frozen=True, slots=True, kw_only=True)
class UpdateCommand:
    """Patch a record that the caller last saw at ``expected_version``.

    ``relationships`` maps association names to their desired full sets. An
    ``office_location`` of ``""`` removes the instructor's office; ``None``
    leaves it alone.
    """

    kind: EntityKind
    entity_id: int
    expected_version: int
    patch: Mapping[str, Any] = field(default_factory=dict)
    relationships: Mapping[str, frozenset[int]] = field(default_factory=dict)
    office_location: str | None = None

    def __post_init__(self) -> None:
        cls = _entity_class(self.kind)
        object.__setattr__(self, "kind", cls.KIND)
        _require_id(self.entity_id, "entity_id")
        _require_version(self.expected_version)
        _check_patch_fields(cls, self.patch)
        object.__setattr__(self, "patch", MappingProxyType(dict(self.patch)))
        object.__setattr__(
            self, "relationships", _freeze_relationships(cls.KIND, self.relationships)
        )
        _check_office(cls.KIND, self.office_location)
        if not self.patch and not self.relationships and self.office_location is None:
            raise CommandValidationError("update changes nothing")

    @property
    def touches_dependents(self) -> bool:
        return bool(self.relationships) or self.office_location is not None


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplaceRelationshipCommand:
    """Make the ``name`` association of ``left_id`` equal ``desired_right_ids``."""

    kind: EntityKind
    left_id: int
    name: str
    desired_right_ids: frozenset[int]

    def __post_init__(self) -> None:
        cls = _entity_class(self.kind)
        object.__setattr__(self, "kind", cls.KIND)
        _require_id(self.left_id, "left_id")
        try:
            association_for(cls.KIND, self.name)
        except ValueError as exc:
            raise CommandValidationError(str(exc)) from exc
        object.__setattr__(
            self,
            "desired_right_ids",
            _freeze_ids(self.desired_right_ids, f"{cls.KIND}.{self.name}"),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class DeleteCommand:
    kind: EntityKind
    entity_id: int
    expected_version: int

    def __post_init__(self) -> None:
        cls = _entity_class(self.kind)
        object.__setattr__(self, "kind", cls.KIND)
        _require_id(self.entity_id, "entity_id")
        _require_version(self.expected_version)


type MutationCommand = CreateCommand | UpdateCommand | ReplaceRelationshipCommand | DeleteCommand
