"""
Canonical protocol definitions for record-spine.

Architecture:
    ::

        protocols.py
        ├── Connection  : the executor capability (DB-API style)
        └── Scanner     : "behaves like a scalar" capability for field types

    Consumers:
        query.py (Connection), record.py and values.py (Scanner),
        migrations/migrator.py (Connection)

Guardrails:
    ❌ DON'T: Open, pool or configure connections inside record-spine
    ✅ DO: Hand an already-open connection to Query / Migrator

Tags:
    protocol, connection, scanner, record-spine, contracts
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """
    Minimal synchronous executor interface.

    ``sqlite3.Connection`` and ``psycopg.Connection`` satisfy it natively;
    drivers without ``Connection.execute`` (PyMySQL, mysql-connector) need a
    thin wrapper that returns a cursor.

    The returned cursor must provide ``description``, ``rowcount``,
    ``lastrowid``, ``fetchone()``, ``fetchall()`` and ``close()``.

    Examples:
        >>> cursor = conn.execute("SELECT ID, Name FROM users WHERE ID = ?", (1,))
        >>> cursor.fetchone()
        (1, 'ada')
    """

    def execute(self, sql: str, params: Any = ()) -> Any:
        """Execute SQL statement with optional parameters. SYNC."""
        ...

    def commit(self) -> None:
        """Commit current transaction. SYNC."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction. SYNC."""
        ...


@runtime_checkable
class Scanner(Protocol):
    """
    Capability of a field type that maps to a single SQL column.

    A record-shaped field type that implements ``Scanner`` is treated as a
    scalar: it is never flattened into its parent, values read from the
    database are converted with ``from_sql`` and values bound as parameters
    are converted with ``to_sql``.  Such types have no default SQL type; give
    them one with a tag (``column(",VARCHAR(64) NOT NULL")``) or a dialect
    extension.

    Examples:
        >>> @dataclass
        ... class Money:
        ...     cents: int = 0
        ...
        ...     @classmethod
        ...     def from_sql(cls, value):
        ...         return cls(int(value))
        ...
        ...     def to_sql(self):
        ...         return self.cents
    """

    @classmethod
    def from_sql(cls, value: Any) -> Any:
        """Build a value from what the driver returned."""
        ...

    def to_sql(self) -> Any:
        """Return a driver-bindable representation."""
        ...


__all__ = [
    "Connection",
    "Scanner",
]
