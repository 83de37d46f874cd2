"""Record selector: record type → ordered column list.

``FieldSelector`` walks a record's descriptor depth-first in declaration
order, splicing the fields of inline records into the parent at the position
the nested field occupies, then applies an optional include/exclude filter.

Example::

    >>> fields(User).except_("Password").select()
    [Field(name='ID', data_type='BIGINT NOT NULL'),
     Field(name='Name', data_type='VARCHAR(255) NOT NULL')]

Column names are not de-duplicated.  Two nested records that resolve to the
same column name produce the name twice; the SQL built from such a selection
is undefined, so give colliding fields distinct tag names.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from recordspine.dialect import DefaultDialect, Dialect
from recordspine.errors import FilterConflictError
from recordspine.record import describe, extract_field_info, record_type


@dataclass(frozen=True)
class Field:
    """A mapped column: resolved name and SQL data type."""

    name: str
    data_type: str = ""


class FilterMode(str, Enum):
    """How a selector's name set is applied."""

    INCLUDE = "include"
    EXCLUDE = "exclude"


class FieldSelector:
    """Selects record fields and builds a ``Field`` list.

    Parameters:
        record: A record type or instance.
        dialect: Dialect used to resolve data types.  ``None`` resolves
                 names only.
    """

    def __init__(self, record: Any, dialect: Dialect | None = None) -> None:
        self._type = record_type(record)
        self._dialect: Dialect | None = dialect
        self._filter: set[str] | None = None
        self._mode: FilterMode | None = None

    @property
    def dialect(self) -> Dialect | None:
        return self._dialect

    @property
    def mode(self) -> FilterMode | None:
        return self._mode

    def only(self, *names: str) -> FieldSelector:
        """Keep only the named columns."""
        self._set_filter(FilterMode.INCLUDE, names)
        return self

    def except_(self, *names: str) -> FieldSelector:
        """Keep every column except the named ones."""
        self._set_filter(FilterMode.EXCLUDE, names)
        return self

    def set_dialect(self, dialect: Dialect | None) -> FieldSelector:
        """Swap the dialect used to resolve data types."""
        self._dialect = dialect
        return self

    def select(self) -> list[Field]:
        """Build the ordered field list; may be called repeatedly."""
        return _select(
            self._type,
            [],
            self._dialect,
            self._filter,
            self._mode is FilterMode.EXCLUDE,
        )

    def _set_filter(self, mode: FilterMode, names: Iterable[str]) -> None:
        if self._mode is not None and self._mode is not mode:
            other = "an Except" if self._mode is FilterMode.EXCLUDE else "an Only"
            raise FilterConflictError(f"{other} filter was already set")
        if self._filter is None:
            self._filter = set()
            self._mode = mode
        self._filter.update(names)

    def __repr__(self) -> str:
        return (
            f"FieldSelector({self._type.__qualname__}, dialect={self._dialect!r}, "
            f"mode={self._mode and self._mode.value})"
        )


def fields(record: Any, dialect: Dialect | None = None) -> FieldSelector:
    """Return a selector for ``record`` using ``dialect`` (default: ``DefaultDialect``)."""
    return FieldSelector(record, dialect if dialect is not None else DefaultDialect())


def _select(
    cls: type,
    selected: list[Field],
    dialect: Dialect | None,
    filter_set: set[str] | None,
    exclude: bool,
) -> list[Field]:
    for spec in describe(cls):
        info = extract_field_info(spec, dialect)

        if info.ignore:
            continue
        if info.inline:
            _select(spec.type, selected, dialect, filter_set, exclude)
            continue
        if filter_set is not None and (info.name in filter_set) == exclude:
            # Include mode drops names outside the set, exclude mode the ones inside.
            continue

        selected.append(Field(info.name, info.data_type))

    return selected


__all__ = [
    "Field",
    "FilterMode",
    "FieldSelector",
    "fields",
]
