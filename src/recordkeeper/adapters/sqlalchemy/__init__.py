"""SQLAlchemy adapter package for recordkeeper."""

from __future__ import annotations

from .mappings import TABLE_BY_KIND, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAssociationRepository,
    SqlAlchemyDependencyRepository,
    SqlAlchemyOfficeAssignmentRepository,
    SqlAlchemyVersionedStore,
)
from .unit_of_work import (
    SqlAlchemyMutationUnitOfWork,
    StartupError,
    create_database_engine,
    shutdown,
    startup,
)

__all__ = [
    "TABLE_BY_KIND",
    "SqlAlchemyAssociationRepository",
    "SqlAlchemyDependencyRepository",
    "SqlAlchemyMutationUnitOfWork",
    "SqlAlchemyOfficeAssignmentRepository",
    "SqlAlchemyVersionedStore",
    "StartupError",
    "create_database_engine",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
