"""Tests for RecordSpineSettings and Database wiring."""

from __future__ import annotations

import sqlite3

import pytest
from pydantic import ValidationError

from _support import Person, RecordingConnection
from recordspine.database import Database
from recordspine.dialect import DefaultDialect, MySQLDialect, PostgreSQLDialect, SQLiteDialect
from recordspine.errors import ConfigError
from recordspine.migrations import Migrator
from recordspine.settings import RecordSpineSettings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Isolate from the developer's environment and any .env file."""
    for key in (
        "RECORDSPINE_DIALECT",
        "RECORDSPINE_POSTGRES_NUMBERED",
        "RECORDSPINE_LOG_LEVEL",
        "RECORDSPINE_LOG_JSON",
        "RECORDSPINE_SERVICE",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


class TestSettings:
    def test_defaults(self) -> None:
        s = RecordSpineSettings()
        assert s.dialect == "default"
        assert s.postgres_numbered is False
        assert s.log_level == "INFO"
        assert s.log_json is False
        assert s.service == "recordspine"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RECORDSPINE_DIALECT", "PostgreSQL")
        monkeypatch.setenv("RECORDSPINE_POSTGRES_NUMBERED", "true")
        monkeypatch.setenv("RECORDSPINE_LOG_LEVEL", "debug")
        s = RecordSpineSettings()
        assert s.dialect == "postgresql"
        assert s.postgres_numbered is True
        assert s.log_level == "DEBUG"

    def test_reads_env_file(self, tmp_path) -> None:
        (tmp_path / ".env").write_text("RECORDSPINE_DIALECT=mysql\n", encoding="utf-8")
        assert RecordSpineSettings().dialect == "mysql"

    def test_unknown_dialect(self) -> None:
        with pytest.raises(ValidationError):
            RecordSpineSettings(dialect="oracle")

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            RecordSpineSettings(log_level="loud")

    @pytest.mark.parametrize(
        ("name", "cls"),
        [
            ("default", DefaultDialect),
            ("sqlite", SQLiteDialect),
            ("mysql", MySQLDialect),
            ("postgres", PostgreSQLDialect),
        ],
    )
    def test_build_dialect(self, name: str, cls: type) -> None:
        assert isinstance(RecordSpineSettings(dialect=name).build_dialect(), cls)

    def test_numbered_postgres(self) -> None:
        s = RecordSpineSettings(dialect="postgresql", postgres_numbered=True)
        assert s.build_dialect().bind_var(0) == "$1"

    def test_get_settings_caches(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings(reload=True)
        assert get_settings() is first
        monkeypatch.setenv("RECORDSPINE_DIALECT", "sqlite")
        assert get_settings().dialect == first.dialect
        assert get_settings(reload=True).dialect == "sqlite"


class TestDatabase:
    def test_from_settings(self, conn: sqlite3.Connection) -> None:
        db = Database.from_settings(conn, RecordSpineSettings(dialect="sqlite"))
        assert isinstance(db.dialect, SQLiteDialect)
        assert db.connection is conn

    def test_from_environment(self, conn: sqlite3.Connection, monkeypatch) -> None:
        monkeypatch.setenv("RECORDSPINE_DIALECT", "mysql")
        assert isinstance(Database.from_settings(conn).dialect, MySQLDialect)

    def test_default_dialect(self, recording: RecordingConnection) -> None:
        assert isinstance(Database(recording).dialect, DefaultDialect)

    def test_fields_and_query_share_dialect(self, recording: RecordingConnection) -> None:
        db = Database(recording, PostgreSQLDialect())
        assert db.fields(Person).dialect is db.dialect
        assert db.query().dialect is db.dialect

    def test_migrator_requires_inspection(self, recording: RecordingConnection) -> None:
        with pytest.raises(ConfigError):
            Database(recording).migrator()

    def test_migrator(self, conn: sqlite3.Connection) -> None:
        migrator = Database(conn, SQLiteDialect()).migrator()
        assert isinstance(migrator, Migrator)

    def test_commit_and_rollback(self, recording: RecordingConnection) -> None:
        db = Database(recording)
        db.commit()
        db.rollback()
        assert (recording.commits, recording.rollbacks) == (1, 1)
