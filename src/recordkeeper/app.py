"""Application wiring entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from recordkeeper.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMutationUnitOfWork,
    is_started,
    startup,
)
from recordkeeper.domain.mutations import MutationService

if TYPE_CHECKING:
    from recordkeeper.domain.mutations import UnitOfWorkFactory

log = getLogger(__name__)


def build_mutation_service(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> MutationService:
    """Return a mutation service bound to the configured database.

    The SQLAlchemy adapter is started (and the schema migrated) on first use
    unless a custom unit-of-work factory is supplied.
    """

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyMutationUnitOfWork
    log.debug("Building mutation service")
    return MutationService(unit_of_work_factory)
