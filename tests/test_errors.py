"""Tests for the structured error hierarchy."""

from __future__ import annotations

import pytest

from recordspine.errors import (
    ConfigError,
    DatabaseError,
    EmptyQueryError,
    ErrorCategory,
    ErrorContext,
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
    categorize_error,
    is_retryable,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error", "builtin"),
        [
            (InvalidRecordError("x"), TypeError),
            (InvalidFieldTypeError("Payload", dict), TypeError),
            (FilterConflictError("x"), ValueError),
            (EmptyQueryError(), ValueError),
            (FormatError("x"), ValueError),
        ],
    )
    def test_programmer_errors(self, error: RecordSpineError, builtin: type) -> None:
        assert isinstance(error, ProgrammingError)
        assert isinstance(error, builtin)
        assert error.category is ErrorCategory.INTERNAL
        assert error.retryable is False

    @pytest.mark.parametrize(
        "error",
        [QueryError("x"), NoRecordError(), ScanError("x"), MigrationError("users")],
    )
    def test_operational_errors(self, error: RecordSpineError) -> None:
        assert isinstance(error, DatabaseError)
        assert error.category is ErrorCategory.DATABASE

    def test_not_found_is_a_query_error(self) -> None:
        assert isinstance(NoRecordError(), QueryError)
        assert str(NoRecordError()) == "no record found"

    def test_empty_query_message(self) -> None:
        assert str(EmptyQueryError()) == "query is empty"

    def test_config_error(self) -> None:
        assert ConfigError("bad").category is ErrorCategory.CONFIG


class TestInvalidFieldType:
    def test_carries_field_and_dialect(self) -> None:
        exc = InvalidFieldTypeError("Payload", dict, "sqlite")
        assert exc.field_name == "Payload"
        assert exc.value_type is dict
        assert exc.context.column == "Payload"
        assert exc.context.dialect == "sqlite"
        assert "Payload" in str(exc)


class TestMigrationError:
    def test_message_with_column(self) -> None:
        exc = MigrationError("users", "Email", cause=RuntimeError("disk full"))
        assert str(exc) == "migration table users, column Email: disk full"
        assert exc.table == "users"
        assert exc.column == "Email"
        assert exc.__cause__ is exc.cause

    def test_message_without_column(self) -> None:
        exc = MigrationError("users", cause=RuntimeError("disk full"))
        assert str(exc) == "migration table users: disk full"
        assert exc.column is None

    def test_context(self) -> None:
        exc = MigrationError("users", "Email", cause=RuntimeError("x"))
        assert exc.context.to_dict() == {"table": "users", "column": "Email"}


class TestContext:
    def test_with_context_sets_known_fields(self) -> None:
        exc = QueryError("failed").with_context(statement="SELECT 1", dialect="sqlite")
        assert exc.context.statement == "SELECT 1"
        assert exc.context.dialect == "sqlite"

    def test_with_context_puts_unknown_keys_in_metadata(self) -> None:
        exc = QueryError("failed").with_context(attempt=2)
        assert exc.context.metadata == {"attempt": 2}

    def test_to_dict(self) -> None:
        exc = QueryError(
            "failed",
            context=ErrorContext(statement="SELECT 1"),
            cause=ValueError("bad"),
        )
        assert exc.to_dict() == {
            "error_type": "QueryError",
            "message": "failed",
            "category": "DATABASE",
            "retryable": False,
            "context": {"statement": "SELECT 1"},
            "cause": {"type": "ValueError", "message": "bad"},
        }

    def test_repr(self) -> None:
        assert repr(ConfigError("bad")) == "ConfigError('bad', category=CONFIG)"


class TestUtilities:
    def test_is_retryable(self) -> None:
        assert is_retryable(QueryError("x", retryable=True))
        assert not is_retryable(QueryError("x"))
        assert is_retryable(ConnectionError())
        assert not is_retryable(KeyError())

    def test_categorize_error(self) -> None:
        assert categorize_error(MigrationError("t")) is ErrorCategory.DATABASE
        assert categorize_error(ValueError()) is ErrorCategory.INTERNAL
        assert categorize_error(KeyError()) is ErrorCategory.UNKNOWN
