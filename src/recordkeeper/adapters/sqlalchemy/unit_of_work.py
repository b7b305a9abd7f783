"""SQLAlchemy-backed units of work for record mutations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from recordkeeper.adapters.sqlalchemy.mappings import start_mappers
from recordkeeper.adapters.sqlalchemy.migrations import upgrade_head
from recordkeeper.adapters.sqlalchemy.repositories import (
    SqlAlchemyAssociationRepository,
    SqlAlchemyDependencyRepository,
    SqlAlchemyOfficeAssignmentRepository,
    SqlAlchemyVersionedStore,
)
from recordkeeper.config import get_database_config
from recordkeeper.config.storage import DEFAULT_BUSY_TIMEOUT_SECONDS
from recordkeeper.domain.model import Course, Department, Instructor, Student
from recordkeeper.domain.ports import MutationRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


def create_database_engine(
    uri: str,
    *,
    busy_timeout_seconds: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
) -> Engine:
    """Create an engine; SQLite engines get a busy timeout and eager write locks.

    On SQLite every transaction starts with ``BEGIN IMMEDIATE``: the writer
    slot is taken up front, so two writers queue on the busy timeout instead
    of deadlocking on a read-to-write lock upgrade. Foreign keys are switched
    on per connection.
    """

    if not uri.startswith("sqlite"):
        return create_engine(uri, future=True)

    engine = create_engine(
        uri,
        future=True,
        connect_args={"timeout": busy_timeout_seconds, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:  # pyright: ignore[reportUnusedFunction]
        # hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection: Connection) -> None:  # pyright: ignore[reportUnusedFunction]
        connection.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call recordkeeper.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    busy_timeout_seconds: float | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, mappers, schema and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )
    if force and _STATE.engine is not None and _STATE.engine is not engine:
        _STATE.engine.dispose()

    resolved_engine = engine
    if resolved_engine is None:
        config = get_database_config()
        resolved_engine = create_database_engine(
            database_uri or config.uri,
            busy_timeout_seconds=(
                busy_timeout_seconds
                if busy_timeout_seconds is not None
                else config.busy_timeout_seconds
            ),
        )
    start_mappers()
    upgrade_head(engine=resolved_engine)
    log.info("SQLAlchemy adapter started on %s", resolved_engine.url)

    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory: sessionmaker[Session] = session_factory or _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyMutationUnitOfWork(BaseSqlAlchemyUnitOfWork[MutationRepositories]):
    """One transaction spanning every repository a mutation touches."""

    def _build_repositories(self, session: Session) -> MutationRepositories:
        return MutationRepositories(
            students=SqlAlchemyVersionedStore(session, Student),
            instructors=SqlAlchemyVersionedStore(session, Instructor),
            courses=SqlAlchemyVersionedStore(session, Course),
            departments=SqlAlchemyVersionedStore(session, Department),
            associations=SqlAlchemyAssociationRepository(session),
            dependencies=SqlAlchemyDependencyRepository(session),
            office_assignments=SqlAlchemyOfficeAssignmentRepository(session),
        )
