"""
Base building blocks:
identity, version counter, mutable-field contract.
"""

from __future__ import annotations

from dataclasses import MISSING, dataclass, fields
from functools import cache
from typing import ClassVar, Final

from recordkeeper.domain.model.enums import EntityKind  # noqa: TC001

INITIAL_VERSION: Final[int] = 1
_SYSTEM_FIELDS: Final[frozenset[str]] = frozenset({"id", "version"})


@dataclass(eq=False, kw_only=True)
class VersionedEntity:
    """A record whose every committed mutation bumps ``version`` by exactly one.

    ``id`` is assigned by storage (or by the caller for kinds with manual keys)
    and never changes afterwards. ``version`` is owned by the store: it is set
    to 1 on creation and only moves through the conditional write.
    """

    id: int | None = None
    version: int = INITIAL_VERSION

    # class-level discriminator; subclasses must override
    KIND: ClassVar[EntityKind]
    # kinds whose ids are supplied by the caller instead of autoincrement
    MANUAL_ID: ClassVar[bool] = False

    @property
    def kind(self) -> EntityKind:
        return self.KIND

    @classmethod
    def mutable_fields(cls) -> frozenset[str]:
        return _mutable_fields(cls)

    @classmethod
    def required_fields(cls) -> frozenset[str]:
        return _required_fields(cls)

    def snapshot(self) -> dict[str, object]:
        """Return the persisted state as a plain mapping (id, fields, version)."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@cache
def _mutable_fields(cls: type[VersionedEntity]) -> frozenset[str]:
    return frozenset(f.name for f in fields(cls) if f.name not in _SYSTEM_FIELDS)


@cache
def _required_fields(cls: type[VersionedEntity]) -> frozenset[str]:
    return frozenset(
        f.name
        for f in fields(cls)
        if f.name not in _SYSTEM_FIELDS and f.default is MISSING and f.default_factory is MISSING
    )
