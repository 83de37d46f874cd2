"""Record-driven table migrator.

For every model, in order:

1. Ask the ``DBInfo`` whether the table exists.
2. Missing table: ``CREATE TABLE t (<selected columns>, <model extras>)``,
   then ``model.migrate(query, INITIALIZE)``.
3. Existing table: select the model's fields except the existing column
   names and issue one ``ALTER TABLE t ADD <col> <type>`` per new column,
   calling ``model.migrate(query, column)`` after each.

Each applied step is committed on its own: the CREATE with its
``INITIALIZE`` callback, every ALTER with its column callback, every DROP.
The first failure aborts the batch and leaves earlier steps in place, so a
re-run picks up at the failed column.  The failed step itself is not
committed; rolling it back is up to the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, TypeVar, runtime_checkable

from recordspine.dialect import Dialect
from recordspine.errors import MigrationError
from recordspine.logging import get_logger, log_scope
from recordspine.protocols import Connection
from recordspine.query import FIELD_SEP, Query
from recordspine.selector import Field

logger = get_logger(__name__)

T = TypeVar("T")

# Column argument of Model.migrate right after the table was created.
INITIALIZE = ""


@runtime_checkable
class Model(Protocol):
    """A record that owns a table."""

    def table_name(self) -> str:
        ...

    def create_table(self, query: Query) -> None:
        """Called before ``CREATE TABLE`` is executed.

        The query separator is already ``", "``, so each ``write`` adds one
        more table element (e.g. ``PRIMARY KEY (ID)``).
        """
        ...

    def migrate(self, query: Query, column: str) -> None:
        """Called after a column was added, or with ``INITIALIZE`` after creation."""
        ...


@runtime_checkable
class DBInfo(Dialect, Protocol):
    """A dialect that can also inspect the live schema."""

    def has_table(self, query: Query, table_name: str) -> bool:
        ...

    def table_columns(self, query: Query, table_name: str) -> list[str]:
        ...


@dataclass
class MigrationResult:
    """Result of a successful migration run."""

    tables_created: list[str] = field(default_factory=list)
    new_columns: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.tables_created or self.new_columns)


class Migrator:
    """Creates and extends tables from record models.

    Parameters
    ----------
    conn
        Open DB-API connection.
    db_info
        Dialect with schema inspection (e.g. ``SQLiteDialect``).

    Example::

        migrator = Migrator(conn, SQLiteDialect())
        result = migrator.migrate(User(), Order())
        print(result.tables_created, result.new_columns)
    """

    def __init__(self, conn: Connection, db_info: DBInfo) -> None:
        self._conn = conn
        self._db_info = db_info

    @property
    def db_info(self) -> DBInfo:
        return self._db_info

    def migrate(self, *models: Model) -> MigrationResult:
        """Migrate ``models`` in order.

        Raises:
            MigrationError: a statement, inspection or callback failed.
        """
        result = MigrationResult()
        for model in models:
            with log_scope(table=model.table_name()):
                self._migrate_model(model, result)
        return result

    def drop(self, *models: Model) -> None:
        """Drop the tables of ``models`` in order, stopping at the first failure."""
        query = self._query()
        for model in models:
            table = model.table_name()
            with log_scope(table=table):
                self._step(table, None, query.writef("DROP TABLE {}", table).exec)
            self._conn.commit()
            logger.info("migration.table_dropped", table=table)
            query.reset()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _query(self) -> Query:
        return Query(self._conn, self._db_info)

    def _migrate_model(self, model: Model, result: MigrationResult) -> None:
        query = self._query()
        table = model.table_name()

        exists = self._step(table, None, lambda: self._db_info.has_table(query, table))
        query.reset()

        selector = query.fields(model)
        if not exists:
            self._create_table(query, model, table, selector.select())
            result.tables_created.append(table)
            return

        existing = self._step(
            table, None, lambda: self._db_info.table_columns(query, table)
        )
        query.reset()

        for new_field in selector.except_(*existing).select():
            column = new_field.name
            self._step(
                table,
                column,
                query.writef("ALTER TABLE {}", table)
                .write_fields("ADD {name} {data_type}", "", new_field)
                .exec,
            )
            query.reset()
            logger.info(
                "migration.column_added",
                table=table,
                column=column,
                data_type=new_field.data_type,
            )
            self._step(table, column, lambda: model.migrate(query, column))
            query.reset()
            self._conn.commit()
            result.new_columns.append(f"{table}.{column}")

    def _create_table(
        self, query: Query, model: Model, table: str, fields: list[Field]
    ) -> None:
        def create() -> None:
            query.writef("CREATE TABLE {} (", table).write_fields(
                "{name} {data_type}", FIELD_SEP, *fields
            ).set_separator(FIELD_SEP)
            model.create_table(query)
            query.write_raw(")").exec()

        self._step(table, None, create)
        query.reset()
        logger.info("migration.table_created", table=table, columns=len(fields))

        self._step(table, None, lambda: model.migrate(query, INITIALIZE))
        query.reset()
        self._conn.commit()

    def _step(self, table: str, column: str | None, operation: Callable[[], T]) -> T:
        try:
            return operation()
        except MigrationError:
            raise
        except Exception as exc:
            logger.error(
                "migration.failed",
                table=table,
                column=column,
                error=str(exc),
            )
            raise MigrationError(table, column, cause=exc) from exc


__all__ = [
    "INITIALIZE",
    "Model",
    "DBInfo",
    "MigrationResult",
    "Migrator",
]
