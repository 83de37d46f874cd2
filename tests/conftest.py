"""
Shared pytest fixtures for record-spine tests.

This module provides:
- In-memory SQLite connections
- Recording connections for statement assertions
- Structlog reset between tests
"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator

import pytest
import structlog

from _support import RecordingConnection
from recordspine import Query, SQLiteDialect


@pytest.fixture
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory SQLite connection."""
    c = sqlite3.connect(":memory:")
    yield c
    c.close()


@pytest.fixture
def sqlite() -> SQLiteDialect:
    return SQLiteDialect()


@pytest.fixture
def query(conn: sqlite3.Connection, sqlite: SQLiteDialect) -> Query:
    """Query bound to the in-memory connection."""
    return Query(conn, sqlite)


@pytest.fixture
def people(conn: sqlite3.Connection) -> sqlite3.Connection:
    """Connection with a populated ``people`` table."""
    conn.execute("CREATE TABLE people (ID INTEGER PRIMARY KEY, Name TEXT NOT NULL)")
    conn.executemany(
        "INSERT INTO people (ID, Name) VALUES (?, ?)",
        [(1, "ada"), (2, "grace"), (3, "linus")],
    )
    conn.commit()
    return conn


@pytest.fixture
def recording() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
