"""SQL dialect abstraction for database-agnostic record mapping.

A ``Dialect`` decides two things: which SQL column type a record field's
host type becomes, and how a bind variable is spelled at a given position.
The record selector, the statement builder and the migrator only ever talk
to this protocol, so the same record declarations produce valid DDL for
SQLite, MySQL and PostgreSQL.

Manifesto:
    Record declarations must be portable across backends.  Without a dialect
    layer, every record would hard-code ``BIGINT UNSIGNED`` or ``BYTEA`` and
    break as soon as it moved to another database.

    - **One interface:** ``type_map`` + ``bind_var`` for all SQL generation
    - **Immutable tables:** each dialect instance owns a frozen type table
    - **Explicit delegation:** driver dialects wrap a base dialect and call it
    - **Schema inspection:** concrete dialects answer ``has_table`` and
      ``table_columns`` for the migrator

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Abstraction Layer                     │
    └──────────────────────────────────────────────────────────────────┘

    FieldSelector / Query / Migrator
                              │
                              ▼
    ┌────────────────┐ ┌────────────────┐ ┌──────────────────┐ ┌────────┐
    │ DefaultDialect │ │ MySQLDialect   │ │ PostgreSQLDialect│ │ SQLite │
    │ ?              │ │ %s             │ │ %s  or  $1       │ │ ?      │
    │ type table     │ │ → base + extra │ │ → base + override│ │ own    │
    └────────────────┘ └────────────────┘ └──────────────────┘ └────────┘

Examples:
    >>> from recordspine.dialect import DefaultDialect, get_dialect
    >>> d = DefaultDialect()
    >>> d.type_map(str)
    ('VARCHAR(255) NOT NULL', True)
    >>> d.type_map(dict)
    ('', False)
    >>> get_dialect("postgresql", numbered=True).bind_var(0)
    '$1'

Guardrails:
    ❌ DON'T: Mutate a dialect's type table at runtime
    ✅ DO: Wrap a base dialect and special-case the extra types

    ❌ DON'T: Call ``self.type_map`` from a wrapper's fallback path
    ✅ DO: Call ``self._base.type_map``

Tags:
    dialect, sql, abstraction, portability, type-mapping, record-spine

Doc-Types:
    - API Reference
    - Database Portability Guide
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from recordspine.errors import ConfigError
from recordspine.sqltypes import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    unwrap_optional,
)

if TYPE_CHECKING:
    from recordspine.query import Query

TypeKey = tuple[Any, bool]


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract."""

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def type_map(self, value_type: Any) -> tuple[str, bool]:
        """Map a host value type to a SQL column type.

        Returns ``(sql_type, True)`` on success and ``("", False)`` when the
        type has no representation in this dialect.
        """
        ...

    def bind_var(self, index: int) -> str:
        """Bind variable for the 0-based parameter position ``index``.

        ``index`` is ignored by dialects with anonymous placeholders
        (``?``, ``%s``) but required by numbered styles (``$1``).
        """
        ...


def type_key(value_type: Any) -> TypeKey:
    """Normalize an annotation into a ``(type, nullable)`` lookup key."""
    return unwrap_optional(value_type)


def _lookup(table: Mapping[TypeKey, str], value_type: Any) -> tuple[str, bool]:
    try:
        data_type = table.get(type_key(value_type))
    except TypeError:
        # Annotated[...] with unhashable metadata
        return "", False
    if data_type is None:
        return "", False
    return data_type, True


def _default_type_table() -> dict[TypeKey, str]:
    return {
        (str, False): "VARCHAR(255) NOT NULL",
        (int, False): "BIGINT NOT NULL",
        (Int64, False): "BIGINT NOT NULL",
        (Int32, False): "INT NOT NULL",
        (Int16, False): "SMALLINT NOT NULL",
        (Int8, False): "TINYINT NOT NULL",
        (UInt64, False): "BIGINT UNSIGNED NOT NULL",
        (UInt32, False): "INT UNSIGNED NOT NULL",
        (UInt16, False): "SMALLINT UNSIGNED NOT NULL",
        (UInt8, False): "TINYINT UNSIGNED NOT NULL",
        (float, False): "DOUBLE NOT NULL",
        (Float64, False): "DOUBLE NOT NULL",
        (Float32, False): "FLOAT NOT NULL",
        (bool, False): "BOOLEAN NOT NULL",
        (bytes, False): "VARBINARY(255) NULL",
        (datetime.datetime, False): "DATETIME NOT NULL",
        # Nullable scalars
        (str, True): "VARCHAR(255) NULL",
        (int, True): "BIGINT NULL",
        (float, True): "DOUBLE NULL",
        (bool, True): "BOOLEAN NULL",
    }


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class DefaultDialect:
    """Default dialect: ``?`` placeholders, MySQL-flavoured column types."""

    def __init__(self) -> None:
        self._types: Mapping[TypeKey, str] = MappingProxyType(_default_type_table())

    @property
    def name(self) -> str:
        return "default"

    def type_map(self, value_type: Any) -> tuple[str, bool]:
        return _lookup(self._types, value_type)

    def bind_var(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, affinity column types.

    NOT NULL columns carry a constant default because SQLite refuses
    ``ALTER TABLE ... ADD`` of a NOT NULL column without one.
    """

    def __init__(self) -> None:
        integer = "INTEGER NOT NULL DEFAULT 0"
        real = "REAL NOT NULL DEFAULT 0"
        table: dict[TypeKey, str] = {
            (str, False): "TEXT NOT NULL DEFAULT ''",
            (float, False): real,
            (Float64, False): real,
            (Float32, False): real,
            (bool, False): integer,
            (bytes, False): "BLOB NULL",
            (datetime.datetime, False): "TIMESTAMP NOT NULL DEFAULT '1970-01-01 00:00:00'",
            (str, True): "TEXT NULL",
            (int, True): "INTEGER NULL",
            (float, True): "REAL NULL",
            (bool, True): "INTEGER NULL",
            (datetime.datetime, True): "TIMESTAMP NULL",
        }
        for int_type in (int, Int64, Int32, Int16, Int8, UInt64, UInt32, UInt16, UInt8):
            table[(int_type, False)] = integer
        self._types: Mapping[TypeKey, str] = MappingProxyType(table)

    @property
    def name(self) -> str:
        return "sqlite"

    def type_map(self, value_type: Any) -> tuple[str, bool]:
        return _lookup(self._types, value_type)

    def bind_var(self, index: int) -> str:  # noqa: ARG002
        return "?"

    # -- Introspection -----------------------------------------------------

    def has_table(self, query: Query, table_name: str) -> bool:
        (count,) = query.write(
            "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = ?",
            table_name,
        ).scan()
        return count > 0

    def table_columns(self, query: Query, table_name: str) -> list[str]:
        from recordspine.query import append_to_list

        columns: list[str] = []
        query.write("SELECT name FROM pragma_table_info(?)", table_name).for_each(
            append_to_list(columns)
        )
        return columns

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MySQLDialect:
    """MySQL dialect: ``%s`` placeholders (PyMySQL / mysql-connector).

    Wraps a base dialect (``DefaultDialect`` unless given) and only adds
    ``Optional[datetime]`` → ``DATETIME NULL`` on top of it.
    """

    def __init__(self, base: Dialect | None = None) -> None:
        self._base: Dialect = base if base is not None else DefaultDialect()
        self._extra: Mapping[TypeKey, str] = MappingProxyType(
            {(datetime.datetime, True): "DATETIME NULL"}
        )

    @property
    def name(self) -> str:
        return "mysql"

    @property
    def base(self) -> Dialect:
        """The dialect this one falls back to."""
        return self._base

    def type_map(self, value_type: Any) -> tuple[str, bool]:
        data_type, ok = self._base.type_map(value_type)
        if ok:
            return data_type, ok
        return _lookup(self._extra, value_type)

    def bind_var(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    # -- Introspection -----------------------------------------------------

    def has_table(self, query: Query, table_name: str) -> bool:
        (exists,) = (
            query.write(
                "SELECT EXISTS ( SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = (SELECT DATABASE())"
            )
            .write("AND table_name = %s )", table_name)
            .scan()
        )
        return bool(exists)

    def table_columns(self, query: Query, table_name: str) -> list[str]:
        from recordspine.query import append_to_list

        columns: list[str] = []
        query.write(
            "SELECT column_name FROM information_schema.columns "
            "WHERE table_schema = (SELECT DATABASE())"
        ).write("AND table_name = %s ORDER BY ordinal_position", table_name).for_each(
            append_to_list(columns)
        )
        return columns

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base={self._base!r})"


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders (psycopg), or ``$1`` numbering.

    PostgreSQL has no unsigned integers, ``TINYINT``, ``DOUBLE``,
    ``VARBINARY`` or ``DATETIME``; those are overridden here and every other
    type falls back to the base dialect.
    """

    def __init__(self, base: Dialect | None = None, *, numbered: bool = False) -> None:
        self._base: Dialect = base if base is not None else DefaultDialect()
        self._numbered = numbered
        self._overrides: Mapping[TypeKey, str] = MappingProxyType(
            {
                (Int32, False): "INTEGER NOT NULL",
                (Int8, False): "SMALLINT NOT NULL",
                (UInt8, False): "SMALLINT NOT NULL",
                (UInt16, False): "INTEGER NOT NULL",
                (UInt32, False): "BIGINT NOT NULL",
                (UInt64, False): "NUMERIC(20) NOT NULL",
                (float, False): "DOUBLE PRECISION NOT NULL",
                (Float64, False): "DOUBLE PRECISION NOT NULL",
                (Float32, False): "REAL NOT NULL",
                (bytes, False): "BYTEA NULL",
                (datetime.datetime, False): "TIMESTAMP NOT NULL",
                (float, True): "DOUBLE PRECISION NULL",
                (datetime.datetime, True): "TIMESTAMP NULL",
            }
        )

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def base(self) -> Dialect:
        """The dialect this one falls back to."""
        return self._base

    def type_map(self, value_type: Any) -> tuple[str, bool]:
        data_type, ok = _lookup(self._overrides, value_type)
        if ok:
            return data_type, ok
        return self._base.type_map(value_type)

    def bind_var(self, index: int) -> str:
        if self._numbered:
            return f"${index + 1}"
        return "%s"

    # -- Introspection -----------------------------------------------------

    def has_table(self, query: Query, table_name: str) -> bool:
        (exists,) = (
            query.write(
                "SELECT EXISTS ( SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = current_schema()"
            )
            .write(f"AND table_name = {self.bind_var(0)} )", table_name)
            .scan()
        )
        return bool(exists)

    def table_columns(self, query: Query, table_name: str) -> list[str]:
        from recordspine.query import append_to_list

        columns: list[str] = []
        query.write(
            "SELECT column_name FROM information_schema.columns "
            "WHERE table_schema = current_schema()"
        ).write(
            f"AND table_name = {self.bind_var(0)} ORDER BY ordinal_position", table_name
        ).for_each(append_to_list(columns))
        return columns

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base={self._base!r}, numbered={self._numbered})"


# =========================================================================
# Registry / Factory
# =========================================================================

DialectFactory = Callable[..., Dialect]

# Factories, not instances: every caller gets its own dialect object.
_DIALECTS: dict[str, DialectFactory] = {
    "default": DefaultDialect,
    "sqlite": SQLiteDialect,
    "mysql": MySQLDialect,
    "postgresql": PostgreSQLDialect,
    "postgres": PostgreSQLDialect,  # alias
}


def get_dialect(name: str, **kwargs: Any) -> Dialect:
    """Build a dialect by name.

    Args:
        name: One of ``'default'``, ``'sqlite'``, ``'mysql'``,
              ``'postgresql'`` / ``'postgres'``, or a registered name.
        **kwargs: Forwarded to the dialect constructor
                  (e.g. ``numbered=True`` for PostgreSQL).

    Raises:
        ConfigError: If ``name`` is not recognised.

    Example:
        >>> get_dialect("mysql").bind_var(3)
        '%s'
    """
    key = name.lower()
    if key not in _DIALECTS:
        raise ConfigError(
            f"Unknown dialect '{name}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        ).with_context(dialect=name)
    return _DIALECTS[key](**kwargs)


def register_dialect(name: str, factory: DialectFactory) -> None:
    """Register a custom dialect factory.

    Useful for third-party drivers or test doubles.
    """
    _DIALECTS[name.lower()] = factory


def available_dialects() -> list[str]:
    """Registered dialect names."""
    return sorted(_DIALECTS)


__all__ = [
    "Dialect",
    "DefaultDialect",
    "SQLiteDialect",
    "MySQLDialect",
    "PostgreSQLDialect",
    "type_key",
    "get_dialect",
    "register_dialect",
    "available_dialects",
]
