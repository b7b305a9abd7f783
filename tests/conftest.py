from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from recordkeeper.adapters.sqlalchemy import start_mappers
from recordkeeper.adapters.sqlalchemy.migrations import upgrade_head
from recordkeeper.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMutationUnitOfWork,
    create_database_engine,
    shutdown,
    startup,
)
from recordkeeper.domain.mutations import MutationService

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture
def database_uri(tmp_path: Path) -> str:
    # file-backed so every pooled connection sees the same database
    return f"sqlite+pysqlite:///{tmp_path / 'records.db'}"


@pytest.fixture
def sqlite_engine(database_uri: str) -> Iterator[Engine]:
    engine = create_database_engine(database_uri, busy_timeout_seconds=2.0)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyMutationUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyMutationUnitOfWork:
        return SqlAlchemyMutationUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def mutation_service(
    sqlite_unit_of_work: Callable[[], SqlAlchemyMutationUnitOfWork],
) -> MutationService:
    return MutationService(sqlite_unit_of_work)
