"""
Structured error types for record-spine.

Every failure raised by record-spine is a ``RecordSpineError``.  The
hierarchy separates two tiers that callers must treat differently:

- **Programmer errors** (``ProgrammingError``): an invalid record shape, a
  field type with no SQL mapping, conflicting selector filters, executing an
  empty statement.  These are precondition violations.  They are never
  retryable and should abort the caller.  Each also derives from the
  matching builtin (``TypeError`` / ``ValueError``) so plain ``except``
  clauses keep working.
- **Operational errors** (``DatabaseError``): the driver rejected a
  statement, a row could not be scanned, a migration step failed.  These are
  returned to the caller wrapped with enough context (table, column,
  statement) to diagnose the failure without re-querying the database.

Manifesto:
    - **Typed hierarchy:** Distinguish "your record is wrong" from "the
      database said no"
    - **Explicit retry semantics:** Each error knows whether it is retryable
    - **Rich context:** Table, column and statement travel with the error
    - **Error chaining:** The driver exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                     RecordSpineError                          │
        │        (category, retryable, context, cause)                 │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  ProgrammingError           DatabaseError        ConfigError  │
        │  (INTERNAL)                 (DATABASE)           (CONFIG)     │
        │       │                          │                            │
        │  InvalidRecordError         QueryError                        │
        │  InvalidFieldTypeError        ├── NoRecordError               │
        │  FilterConflictError          └── ScanError                   │
        │  EmptyQueryError            MigrationError                    │
        │  FormatError                                                  │
        └──────────────────────────────────────────────────────────────┘

Examples:
    Branching on "not found" versus "query failed":

    >>> try:
    ...     query.write("SELECT * FROM users WHERE ID = ?", 7).first(user)
    ... except NoRecordError:
    ...     user = None

    Reading migration context:

    >>> try:
    ...     migrator.migrate(User())
    ... except MigrationError as exc:
    ...     print(exc.table, exc.column)

Guardrails:
    ❌ DON'T: Catch ``ProgrammingError`` and retry
    ✅ DO: Fix the record declaration or the call site

    ❌ DON'T: Swallow the driver exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, record-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and routing."""

    DATABASE = "DATABASE"  # Driver rejected a statement, scan failed
    CONFIG = "CONFIG"  # Unknown dialect, invalid settings
    INTERNAL = "INTERNAL"  # Programmer errors, invalid record shapes
    UNKNOWN = "UNKNOWN"  # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        table: Table the failing statement targeted
        column: Column being added or scanned, when known
        statement: SQL text that failed
        dialect: Name of the active dialect
        metadata: Additional key-value pairs
    """

    table: str | None = None
    column: str | None = None
    statement: str | None = None
    dialect: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "column", "statement", "dialect"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RecordSpineError(Exception):
    """
    Base exception for all record-spine errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their tier.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RecordSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("insert failed").with_context(
                table="users", statement=sql
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for logging."""
        result = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
        }
        if self.cause:
            result["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# PROGRAMMER ERRORS
# =============================================================================


class ProgrammingError(RecordSpineError):
    """Invalid use of the library; never retryable."""

    default_category = ErrorCategory.INTERNAL
    default_retryable = False


class InvalidRecordError(ProgrammingError, TypeError):
    """The given object is not a record type or record instance."""

    pass


class InvalidFieldTypeError(ProgrammingError, TypeError):
    """A record field has no SQL mapping and no tag-supplied data type."""

    def __init__(self, field_name: str, value_type: Any, dialect: str | None = None):
        super().__init__(
            f"invalid type of record field {field_name!r}: {value_type!r} "
            f"has no SQL mapping in dialect {dialect or 'none'!r}",
            context=ErrorContext(column=field_name, dialect=dialect),
        )
        self.field_name = field_name
        self.value_type = value_type


class FilterConflictError(ProgrammingError, ValueError):
    """Both an include and an exclude filter were set on one selector."""

    pass


class EmptyQueryError(ProgrammingError, ValueError):
    """A statement was executed before any text was written."""

    def __init__(self, message: str = "query is empty"):
        super().__init__(message)


class FormatError(ProgrammingError, ValueError):
    """A field format uses placeholders that cannot be filled."""

    pass


# =============================================================================
# OPERATIONAL ERRORS
# =============================================================================


class DatabaseError(RecordSpineError):
    """Database statement or scan error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class QueryError(DatabaseError):
    """The driver rejected a statement."""

    pass


class NoRecordError(QueryError):
    """Exactly one row was required but the result set was empty."""

    def __init__(self, message: str = "no record found", **kwargs: Any):
        super().__init__(message, **kwargs)


class ScanError(QueryError):
    """A result row could not be assigned to a record."""

    pass


class MigrationError(DatabaseError):
    """A migration step failed for a table (and possibly a column)."""

    def __init__(
        self,
        table: str,
        column: str | None = None,
        *,
        cause: Exception | None = None,
    ):
        reason = str(cause) if cause is not None else "unknown error"
        if column:
            message = f"migration table {table}, column {column}: {reason}"
        else:
            message = f"migration table {table}: {reason}"
        super().__init__(
            message,
            context=ErrorContext(table=table, column=column),
            cause=cause,
        )
        self.table = table
        self.column = column


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(RecordSpineError):
    """Configuration error (unknown dialect, invalid settings)."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, RecordSpineError):
        return error.retryable
    return isinstance(error, (ConnectionError, BrokenPipeError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, RecordSpineError):
        return error.category
    if isinstance(error, (TypeError, ValueError)):
        return ErrorCategory.INTERNAL
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RecordSpineError",
    # Programmer errors
    "ProgrammingError",
    "InvalidRecordError",
    "InvalidFieldTypeError",
    "FilterConflictError",
    "EmptyQueryError",
    "FormatError",
    # Operational errors
    "DatabaseError",
    "QueryError",
    "NoRecordError",
    "ScanError",
    "MigrationError",
    # Config
    "ConfigError",
    # Utilities
    "is_retryable",
    "categorize_error",
]
