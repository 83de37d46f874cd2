"""Statement builder and executor.

``Query`` buffers SQL text and parameters, then executes them through any
object satisfying the :class:`~recordspine.protocols.Connection` protocol.
It is the narrow seam between record-spine and the database driver: the
record selector feeds it column lists, the value binder feeds it parameters
and scan targets, and the migrator feeds it DDL.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                              Query                                 │
    │                                                                    │
    │   write(text, *params)        separator-aware text + params        │
    │   write_fields(fmt, sep, ..)  "{name} {data_type}" per Field       │
    │   write_values(fmt, sep, ..)  "{bind_var}" per value               │
    │   write_value_map(..)         Fields + live values from a record   │
    │                                                                    │
    │   exec()        → rows affected, last insert id                    │
    │   first(rec)    → fill one record (NoRecordError when empty)       │
    │   find(type)    → list of new records                              │
    │   scan()        → first row as a tuple                             │
    │   for_each(fn)  → fn(query, row) per row                           │
    │                                                                    │
    │   defer(fn) / defer_success(fn)  run after the statement settles   │
    └────────────────────────────────────────────────────────────────────┘

Usage:
    >>> user = User(ID=1, Name="ada")
    >>> q = Query(conn, SQLiteDialect())
    >>> selected = q.fields(user).select()
    >>> (
    ...     q.write("INSERT INTO users (")
    ...     .write_fields("{name}", FIELD_SEP, *selected)
    ...     .write_raw(") VALUES (")
    ...     .write_value_map("{bind_var}", FIELD_SEP, values(user), *selected)
    ...     .write_raw(")")
    ...     .exec()
    ... )
    1

A ``Query`` holds private builder state.  Use one per thread of control and
``reset()`` it between statements.

Tags:
    query-builder, executor, dbapi, record-spine
"""

from __future__ import annotations

import io
from collections.abc import Callable, Sequence
from contextlib import closing
from typing import Any, TypeVar

from recordspine.dialect import DefaultDialect, Dialect
from recordspine.errors import (
    EmptyQueryError,
    ErrorContext,
    FormatError,
    NoRecordError,
    QueryError,
    ScanError,
)
from recordspine.logging import get_logger
from recordspine.protocols import Connection
from recordspine.record import blank, record_type
from recordspine.selector import Field, FieldSelector
from recordspine.values import ValueMap, to_param, values

logger = get_logger(__name__)

SPACE = " "
FIELD_SEP = ", "

PH_NAME = "{name}"
PH_DATA_TYPE = "{data_type}"
PH_BIND_VAR = "{bind_var}"

T = TypeVar("T")

DeferFunc = Callable[["Query"], None]
ScanFunc = Callable[["Query", Sequence[Any]], None]


class Query:
    """Builds and executes one SQL statement at a time.

    Parameters:
        conn: Executor satisfying the ``Connection`` protocol.
        dialect: Dialect used for bind variables and field selection.
                 Defaults to :class:`DefaultDialect`.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self._conn = conn
        self._dialect: Dialect = dialect if dialect is not None else DefaultDialect()

        # Builder
        self._buffer = io.StringIO()
        self._sep = SPACE
        self._pre_write = ""
        self._params: list[Any] = []

        # Outcome of the last statement
        self._error: Exception | None = None
        self._rows_affected = 0
        self._last_insert_id: Any = None
        self._deferred: list[DeferFunc] = []

    # -- Writing -----------------------------------------------------------

    def write(self, text: str, *params: Any) -> Query:
        """Write text preceded by the separator, and append ``params``."""
        self._write_sep()
        self._buffer.write(text)
        self._params.extend(params)
        return self

    def writef(self, fmt: str, *args: Any, **kwargs: Any) -> Query:
        """Write ``fmt.format(*args, **kwargs)`` preceded by the separator."""
        self._write_sep()
        self._buffer.write(fmt.format(*args, **kwargs))
        return self

    def write_fields(self, fmt: str, sep: str, *fields: Field) -> Query:
        """Write ``fmt`` once per field, joined by ``sep``.

        ``fmt`` may use ``{name}``, ``{data_type}`` and ``{bind_var}``.
        """
        self._write_sep()
        self._write_format(fmt, sep, fields, len(fields))
        return self

    def write_values(self, fmt: str, sep: str, *values: Any) -> Query:
        """Write ``fmt`` once per value and append the values as params.

        Only ``{bind_var}`` is allowed in ``fmt``.
        """
        self._write_sep()
        self._write_format(fmt, sep, None, len(values))
        self._params.extend(values)
        return self

    def write_value_map(
        self, fmt: str, sep: str, value_map: ValueMap, *fields: Field
    ) -> Query:
        """Write ``fmt`` per field and append the record's values for them."""
        self._write_sep()
        self._write_format(fmt, sep, fields, len(fields))
        self._params.extend(value_map.bind(fields))
        return self

    def write_raw(self, text: str) -> Query:
        """Write text without a separator."""
        self._buffer.write(text)
        return self

    def prepend(self, text: str) -> Query:
        """Put ``text`` and the separator in front of everything written so far."""
        existing = self._buffer.getvalue()
        self._buffer = io.StringIO()
        self._buffer.write(text)
        self._buffer.write(self._sep)
        self._buffer.write(existing)
        return self

    def pre_write(self) -> Query:
        """Write the text registered with ``set_pre_write``, if any."""
        if self._pre_write:
            self._write_sep()
            self._buffer.write(self._pre_write)
        return self

    def set_pre_write(self, text: str) -> Query:
        self._pre_write = text
        return self

    def set_separator(self, sep: str) -> Query:
        """Separator written before each ``write*`` call (default: a space)."""
        self._sep = sep
        return self

    def set_dialect(self, dialect: Dialect) -> Query:
        self._dialect = dialect
        return self

    def add_params(self, *params: Any) -> Query:
        self._params.extend(params)
        return self

    # -- Introspection -----------------------------------------------------

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def params(self) -> list[Any]:
        return list(self._params)

    @property
    def sql(self) -> str:
        return self._buffer.getvalue()

    @property
    def rows_affected(self) -> int:
        return self._rows_affected

    @property
    def last_insert_id(self) -> Any:
        return self._last_insert_id

    @property
    def error(self) -> Exception | None:
        """Failure of the last executed statement, ``None`` after success."""
        return self._error

    def __str__(self) -> str:
        return self.sql

    def __repr__(self) -> str:
        return f"Query({self.sql!r}, params={self._params!r}, dialect={self._dialect.name!r})"

    # -- Deferred callbacks ------------------------------------------------

    def defer(self, fn: DeferFunc) -> Query:
        """Run ``fn(query)`` after the next statement settles."""
        self._deferred.append(fn)
        return self

    def defer_success(self, fn: DeferFunc) -> Query:
        """Run ``fn(query)`` after the next statement, only if it succeeded."""

        def when_ok(query: Query) -> None:
            if query.error is None:
                fn(query)

        self._deferred.append(when_ok)
        return self

    # -- Executing ---------------------------------------------------------

    def exec(self) -> int:
        """Execute the statement; returns the number of affected rows."""
        self._require_text()

        def operation() -> int:
            cursor = self._execute()
            with closing(cursor):
                self._rows_affected = cursor.rowcount
                self._last_insert_id = getattr(cursor, "lastrowid", None)
            return self._rows_affected

        return self._settle(operation)

    def first(self, record: T) -> T:
        """Scan the first result row into ``record``.

        Columns are matched by name; result columns without a record field
        are discarded.

        Raises:
            NoRecordError: the result set is empty.
        """
        self._require_text()
        value_map = values(record)

        def operation() -> T:
            cursor = self._execute()
            with closing(cursor):
                row = cursor.fetchone()
                if row is None:
                    raise NoRecordError(context=ErrorContext(statement=self.sql))
                self._scan_row(value_map, _columns(cursor), row)
            return record

        return self._settle(operation)

    def find(self, record: type[T]) -> list[T]:
        """Build one new ``record`` instance per result row."""
        self._require_text()
        cls = record_type(record)

        def operation() -> list[T]:
            found: list[T] = []
            cursor = self._execute()
            with closing(cursor):
                columns = _columns(cursor)
                for row in iter(cursor.fetchone, None):
                    element = blank(cls)
                    self._scan_row(values(element), columns, row)
                    found.append(element)
            return found

        return self._settle(operation)

    def scan(self) -> tuple[Any, ...]:
        """Return the first result row as a tuple.

        Raises:
            NoRecordError: the result set is empty.
        """
        self._require_text()

        def operation() -> tuple[Any, ...]:
            cursor = self._execute()
            with closing(cursor):
                row = cursor.fetchone()
                if row is None:
                    raise NoRecordError(context=ErrorContext(statement=self.sql))
                return tuple(row)

        return self._settle(operation)

    def for_each(self, fn: ScanFunc) -> None:
        """Call ``fn(query, row)`` for every result row."""
        self._require_text()

        def operation() -> None:
            cursor = self._execute()
            with closing(cursor):
                for row in iter(cursor.fetchone, None):
                    fn(self, row)

        self._settle(operation)

    # -- Lifecycle ---------------------------------------------------------

    def new(self) -> Query:
        """A fresh query on the same connection and dialect."""
        return Query(self._conn, self._dialect)

    def clone(self) -> Query:
        """A copy with its own buffer, params and deferred callbacks."""
        clone = Query(self._conn, self._dialect)
        clone._buffer.write(self.sql)
        clone._sep = self._sep
        clone._pre_write = self._pre_write
        clone._params = list(self._params)
        clone._error = self._error
        clone._rows_affected = self._rows_affected
        clone._last_insert_id = self._last_insert_id
        clone._deferred = list(self._deferred)
        return clone

    def reset(self) -> Query:
        """Clear text, params, outcome and deferred callbacks for reuse."""
        self._buffer = io.StringIO()
        self._params.clear()
        self._sep = SPACE
        self._error = None
        self._rows_affected = 0
        self._last_insert_id = None
        self._deferred.clear()
        return self

    def fields(self, record: Any) -> FieldSelector:
        """Field selector for ``record`` using this query's dialect."""
        return FieldSelector(record, self._dialect)

    # -- Internal helpers --------------------------------------------------

    def _write_sep(self) -> None:
        if self._buffer.tell() > 0:
            self._buffer.write(self._sep)

    def _require_text(self) -> None:
        if self._buffer.tell() == 0:
            raise EmptyQueryError()

    def _write_format(
        self, fmt: str, sep: str, fields: Sequence[Field] | None, count: int
    ) -> None:
        if count < 1:
            return

        has_name = PH_NAME in fmt
        has_data_type = PH_DATA_TYPE in fmt
        has_bind_var = PH_BIND_VAR in fmt

        if fields is None and (has_name or has_data_type):
            raise FormatError(
                "format contains placeholder {name} or {data_type}, "
                "this is not allowed when only formatting values"
            )

        # Bind variables are numbered across the whole statement.
        offset = len(self._params)
        parts = []
        for i in range(count):
            part = fmt
            if fields is not None:
                if has_name:
                    part = part.replace(PH_NAME, fields[i].name)
                if has_data_type:
                    part = part.replace(PH_DATA_TYPE, fields[i].data_type)
            if has_bind_var:
                part = part.replace(PH_BIND_VAR, self._dialect.bind_var(offset + i))
            parts.append(part)
        self._buffer.write(sep.join(parts))

    def _execute(self) -> Any:
        sql = self.sql
        params = tuple(to_param(param) for param in self._params)
        logger.debug("query.exec", statement=sql, params=len(params), dialect=self._dialect.name)
        try:
            return self._conn.execute(sql, params)
        except Exception as exc:
            raise QueryError(
                f"query failed: {exc}",
                context=ErrorContext(statement=sql, dialect=self._dialect.name),
                cause=exc,
            ) from exc

    def _scan_row(self, value_map: ValueMap, columns: Sequence[str], row: Sequence[Any]) -> None:
        try:
            value_map.scan(columns, row)
        except Exception as exc:
            raise ScanError(
                f"scan failed: {exc}",
                context=ErrorContext(statement=self.sql, dialect=self._dialect.name),
                cause=exc,
            ) from exc

    def _settle(self, operation: Callable[[], T]) -> T:
        try:
            result = operation()
        except Exception as exc:
            self._error = exc
            self._run_deferred()
            raise
        self._error = None
        self._run_deferred()
        return result

    def _run_deferred(self) -> None:
        for fn in list(self._deferred):
            fn(self)


def _columns(cursor: Any) -> list[str]:
    return [description[0] for description in cursor.description or ()]


def append_to_list(target: list[Any]) -> ScanFunc:
    """Row callback appending the first column of each row to ``target``.

    Example:
        >>> names: list[str] = []
        >>> q.write("SELECT Name FROM users").for_each(append_to_list(names))
    """

    def append(query: Query, row: Sequence[Any]) -> None:
        target.append(row[0])

    return append


__all__ = [
    "SPACE",
    "FIELD_SEP",
    "DeferFunc",
    "ScanFunc",
    "Query",
    "append_to_list",
]
