"""
Test support records and recording doubles for record-spine tests.

Record types live at module level so their string annotations resolve
with ``typing.get_type_hints``.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional

from recordspine import INITIALIZE, DefaultDialect, UInt64, column


# =============================================================================
# Plain records
# =============================================================================


@dataclass
class Person:
    ID: int = 0
    Name: str = ""


@dataclass
class AuditInfo:
    CreatedAt: datetime.datetime = field(
        default_factory=lambda: datetime.datetime(2020, 1, 1)
    )
    Author: str = ""


@dataclass
class Money:
    """Scanner: stored as integer cents."""

    cents: int = 0

    @classmethod
    def from_sql(cls, value: Any) -> Money:
        return cls(int(value))

    def to_sql(self) -> int:
        return self.cents


@dataclass
class Account:
    ID: UInt64 = column(",BIGINT UNSIGNED NOT NULL AUTO_INCREMENT", default=0)
    Name: str = column("full_name", default="")
    Nick: Optional[str] = None
    Session: str = column("-", default="")
    Audit: AuditInfo = field(default_factory=AuditInfo)
    Balance: Money = column(",BIGINT NOT NULL", default_factory=Money)
    Active: bool = False


@dataclass
class Wallet:
    Owner: str = ""
    Balance: Money = column(",INTEGER NOT NULL DEFAULT 0", default_factory=Money)


@dataclass
class Untagged:
    Balance: Money = field(default_factory=Money)


@dataclass
class Sloppy:
    Payload: dict = field(default_factory=dict)


class Legacy:
    """Non-dataclass record registered by hand."""

    def __init__(self) -> None:
        self.code = ""
        self.size = 0


@dataclass
class Stamp:
    ID: int = 0
    Seen: datetime.datetime = field(
        default_factory=lambda: datetime.datetime(1970, 1, 1)
    )
    Day: Optional[datetime.date] = None
    Active: bool = False


# =============================================================================
# Models
# =============================================================================


@dataclass
class User:
    ID: int = 0
    Name: str = ""

    def __post_init__(self) -> None:
        self.migrated: list[str] = []

    def table_name(self) -> str:
        return "users"

    def create_table(self, query) -> None:
        query.write("PRIMARY KEY (ID)")

    def migrate(self, query, column: str) -> None:
        self.migrated.append(column)


@dataclass
class UserV2(User):
    Email: str = ""
    Score: Optional[float] = None


@dataclass
class BrokenUser(User):
    Extra: str = ""

    def migrate(self, query, column: str) -> None:
        if column != INITIALIZE:
            raise RuntimeError("backfill failed")


@dataclass
class ScoredUser(User):
    """Backfills ``Score``, then fails on ``Extra``."""

    Score: int = 0
    Extra: str = ""

    def migrate(self, query, column: str) -> None:
        if column == "Score":
            query.write("UPDATE users SET Score = 42").exec()
        elif column == "Extra":
            raise RuntimeError("backfill failed")


@dataclass
class Setting:
    Name: str = ""
    Content: str = ""

    def table_name(self) -> str:
        return "settings"

    def create_table(self, query) -> None:
        query.write("PRIMARY KEY (Name)")

    def migrate(self, query, column: str) -> None:
        if column == INITIALIZE:
            query.write(
                "INSERT INTO settings (Name, Content) VALUES (?, ?)", "version", "1"
            ).exec()


@dataclass
class PersonModel(Person):
    def table_name(self) -> str:
        return "people"

    def create_table(self, query) -> None:
        pass

    def migrate(self, query, column: str) -> None:
        pass


@dataclass
class Pet:
    Name: str = ""

    def table_name(self) -> str:
        return "pets"

    def create_table(self, query) -> None:
        pass

    def migrate(self, query, column: str) -> None:
        pass


# =============================================================================
# Recording doubles
# =============================================================================


class RecordingCursor:
    def __init__(self, rows: list[tuple] | None = None, description=None) -> None:
        self._rows = list(rows or [])
        self.description = description
        self.rowcount = -1
        self.lastrowid = None
        self.closed = False

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def close(self) -> None:
        self.closed = True


class RecordingConnection:
    """Records every statement; raises for statements containing ``fail_on``."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.executed: list[tuple[str, tuple]] = []
        self.commits = 0
        self.rollbacks = 0

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]

    def execute(self, sql: str, params: Any = ()) -> RecordingCursor:
        self.executed.append((sql, tuple(params)))
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError("boom")
        return RecordingCursor()

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


class StubDBInfo(DefaultDialect):
    """Default dialect answering schema questions from a dict."""

    def __init__(self, tables: dict[str, list[str]] | None = None, fail: bool = False) -> None:
        super().__init__()
        self.tables = tables or {}
        self.fail = fail

    @property
    def name(self) -> str:
        return "stub"

    def has_table(self, query, table_name: str) -> bool:
        if self.fail:
            raise RuntimeError("inspection failed")
        return table_name in self.tables

    def table_columns(self, query, table_name: str) -> list[str]:
        return list(self.tables[table_name])


class ExplodingDialect:
    """Dialect that fails the test if its type table is consulted."""

    name = "exploding"

    def type_map(self, value_type: Any) -> tuple[str, bool]:
        raise AssertionError(f"type_map consulted for {value_type!r}")

    def bind_var(self, index: int) -> str:
        return "?"
