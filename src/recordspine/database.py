"""Connection wrapper pairing an open DB-API connection with a dialect.

``Database`` does not open connections; hand it one from ``sqlite3``,
PyMySQL or psycopg and it hands out selectors, queries and migrators that
all share the same dialect.

Examples:
    >>> import sqlite3
    >>> db = Database(sqlite3.connect(":memory:"), SQLiteDialect())
    >>> db.migrator().migrate(User())
    >>> db.query().write("SELECT * FROM users").find(User)
    []
"""

from __future__ import annotations

from typing import Any

from recordspine.dialect import DefaultDialect, Dialect
from recordspine.errors import ConfigError
from recordspine.migrations import DBInfo, Migrator
from recordspine.protocols import Connection
from recordspine.query import Query
from recordspine.selector import FieldSelector
from recordspine.settings import RecordSpineSettings


class Database:
    """An open connection and the dialect used to talk to it."""

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self._conn = conn
        self._dialect: Dialect = dialect if dialect is not None else DefaultDialect()

    @classmethod
    def from_settings(
        cls, conn: Connection, settings: RecordSpineSettings | None = None
    ) -> Database:
        """Wrap ``conn`` with the dialect named in the settings."""
        settings = settings if settings is not None else RecordSpineSettings()
        return cls(conn, settings.build_dialect())

    @property
    def connection(self) -> Connection:
        return self._conn

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    def fields(self, record: Any) -> FieldSelector:
        """Field selector for ``record`` using this database's dialect."""
        return FieldSelector(record, self._dialect)

    def query(self) -> Query:
        return Query(self._conn, self._dialect)

    def migrator(self) -> Migrator:
        """Migrator for this database.

        Raises:
            ConfigError: the dialect cannot inspect the schema.
        """
        if not isinstance(self._dialect, DBInfo):
            raise ConfigError(
                f"dialect '{self._dialect.name}' does not support schema inspection"
            ).with_context(dialect=self._dialect.name)
        return Migrator(self._conn, self._dialect)

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def __repr__(self) -> str:
        return f"Database(dialect={self._dialect!r})"


__all__ = ["Database"]
