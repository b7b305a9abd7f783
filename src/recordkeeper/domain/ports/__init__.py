"""Ports the mutation services depend on."""

from __future__ import annotations

from .persistence import (
    AssociationRepository,
    DependencyRepository,
    OfficeAssignmentRepository,
    VersionedEntityStore,
)
from .unit_of_work import (
    MutationRepositories,
    MutationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AssociationRepository",
    "DependencyRepository",
    "MutationRepositories",
    "MutationUnitOfWork",
    "OfficeAssignmentRepository",
    "RepositoryCollection",
    "UnitOfWork",
    "VersionedEntityStore",
]
