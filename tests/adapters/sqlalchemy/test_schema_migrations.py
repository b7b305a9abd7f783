from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import create_engine, inspect, text

from recordkeeper.adapters.sqlalchemy.mappings import mapper_registry
from recordkeeper.adapters.sqlalchemy.migrations import upgrade_head

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

HEAD_REVISION = "0001_school_schema"


def _revision(engine: Engine) -> str:
    with engine.connect() as connection:
        return connection.execute(text("SELECT version_num FROM alembic_version")).scalar_one()


def test_migrations_create_every_mapped_table(sqlite_engine: Engine) -> None:
    tables = set(inspect(sqlite_engine).get_table_names())

    assert set(mapper_registry.metadata.tables) <= tables
    assert _revision(sqlite_engine) == HEAD_REVISION


def test_migrated_columns_match_mapped_columns(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    for name, table in mapper_registry.metadata.tables.items():
        reflected = {column["name"] for column in inspector.get_columns(name)}
        assert reflected == set(table.c.keys()), name


def test_upgrade_head_is_idempotent(sqlite_engine: Engine) -> None:
    upgrade_head(engine=sqlite_engine)

    assert _revision(sqlite_engine) == HEAD_REVISION


def test_upgrade_head_accepts_a_database_uri(tmp_path: Path) -> None:
    uri = f"sqlite+pysqlite:///{tmp_path / 'by-uri.db'}"

    upgrade_head(database_uri=uri)

    engine = create_engine(uri)
    try:
        assert "course_instructor" in inspect(engine).get_table_names()
        assert _revision(engine) == HEAD_REVISION
    finally:
        engine.dispose()
