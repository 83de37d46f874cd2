"""record-spine -- dialect-agnostic record to SQL mapping.

Manifesto:
    Plain Python records should be enough to talk to a SQL database.  A
    record declares its fields once; record-spine derives the column list,
    the SQL types, the bind variables and the table itself from it, for
    whichever dialect the connection speaks.

    - **Records, not models:** dataclasses with optional ``db`` tags
    - **Protocol-first:** Connection, Dialect and Scanner are protocols
    - **Additive migrations:** create missing tables, add missing columns
    - **Typed errors:** programmer errors and database errors never mix

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Structured error hierarchy (RecordSpineError)
        protocols.py       Connection and Scanner protocols
        sqltypes.py        Width markers (Int32, UInt64, Float32, ...)

    Layer 2 -- Mapping
        dialect.py         SQL dialects (default, sqlite, mysql, postgresql)
        record.py          Record descriptors and the field extractor
        selector.py        Record type -> ordered column list
        values.py          Record instance -> column-indexed references

    Layer 3 -- Execution
        query.py           Statement builder and executor
        migrations/        Additive schema migrator
        database.py        Connection + dialect wrapper

    Ambient
        logging.py         structlog configuration
        settings.py        pydantic-settings configuration

Examples:
    >>> import sqlite3
    >>> from dataclasses import dataclass
    >>> from recordspine import Query, SQLiteDialect, fields
    >>> @dataclass
    ... class User:
    ...     ID: int = 0
    ...     Name: str = ""
    >>> fields(User).select()
    [Field(name='ID', data_type='BIGINT NOT NULL'), Field(name='Name', data_type='VARCHAR(255) NOT NULL')]

Tags:
    record-spine, sql, mapper, dialect, migrations
"""

from recordspine.database import Database
from recordspine.dialect import (
    DefaultDialect,
    Dialect,
    MySQLDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    available_dialects,
    get_dialect,
    register_dialect,
)
from recordspine.errors import (
    ConfigError,
    DatabaseError,
    EmptyQueryError,
    FilterConflictError,
    FormatError,
    InvalidFieldTypeError,
    InvalidRecordError,
    MigrationError,
    NoRecordError,
    ProgrammingError,
    QueryError,
    RecordSpineError,
    ScanError,
)
from recordspine.migrations import INITIALIZE, DBInfo, MigrationResult, Migrator, Model
from recordspine.protocols import Connection, Scanner
from recordspine.query import FIELD_SEP, SPACE, Query, append_to_list
from recordspine.record import FieldSpec, blank, column, register_record
from recordspine.selector import Field, FieldSelector, FilterMode, fields
from recordspine.settings import RecordSpineSettings, get_settings
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
)
from recordspine.values import DISCARD, FieldRef, ValueMap, values

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Database
    "Database",
    "Connection",
    # Dialects
    "Dialect",
    "DefaultDialect",
    "SQLiteDialect",
    "MySQLDialect",
    "PostgreSQLDialect",
    "get_dialect",
    "register_dialect",
    "available_dialects",
    # Records
    "FieldSpec",
    "column",
    "register_record",
    "blank",
    "Scanner",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",
    # Selector / values
    "Field",
    "FieldSelector",
    "FilterMode",
    "fields",
    "FieldRef",
    "ValueMap",
    "DISCARD",
    "values",
    # Query
    "Query",
    "SPACE",
    "FIELD_SEP",
    "append_to_list",
    # Migrations
    "INITIALIZE",
    "Model",
    "DBInfo",
    "MigrationResult",
    "Migrator",
    # Settings
    "RecordSpineSettings",
    "get_settings",
    # Errors
    "RecordSpineError",
    "ProgrammingError",
    "InvalidRecordError",
    "InvalidFieldTypeError",
    "FilterConflictError",
    "EmptyQueryError",
    "FormatError",
    "DatabaseError",
    "QueryError",
    "NoRecordError",
    "ScanError",
    "MigrationError",
    "ConfigError",
]
