from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from recordkeeper.config import storage


def test_storage_config_prefers_explicit_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("RECORDKEEPER_DATA_DIR", str(custom))

    config = storage.get_storage_config()

    assert config.resolve_data_dir() == custom.resolve()


def test_database_config_uses_uri_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")
    monkeypatch.delenv("RECORDKEEPER_BUSY_TIMEOUT", raising=False)

    config = storage.get_database_config()

    assert config.uri == "sqlite:///override.db"
    assert config.busy_timeout_seconds == storage.DEFAULT_BUSY_TIMEOUT_SECONDS


def test_database_config_creates_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("RECORDKEEPER_DATA_DIR", str(tmp_path / "data-dir"))

    config = storage.get_database_config()

    expected_path = (tmp_path / "data-dir" / storage.DEFAULT_DB_FILENAME).resolve()
    assert config.uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_database_config_reads_busy_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")
    monkeypatch.setenv("RECORDKEEPER_BUSY_TIMEOUT", "1.5")

    assert storage.get_database_config().busy_timeout_seconds == 1.5
