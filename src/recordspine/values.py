"""Value binder: live record instance → name-indexed field references.

``values(record)`` walks an instance exactly like the selector walks its
type (same ignore and flatten rules, no dialect needed) and returns a
``ValueMap`` from column name to ``FieldRef``.  The references are used two
ways:

* ``map_to_columns`` when the database decides the column order
  (``SELECT *``); unknown columns go to ``DISCARD``.
* ``map_to_fields`` when a ``FieldSelector`` decided it, e.g. to write
  ``INSERT`` values in the same order as the column list.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Sequence
from typing import Any

from recordspine.errors import InvalidRecordError
from recordspine.record import blank, describe, extract_field_info, is_record, is_scanner
from recordspine.selector import Field
from recordspine.sqltypes import supertype, unwrap_optional


class FieldRef:
    """Reference to one attribute of one record instance."""

    __slots__ = ("owner", "attr", "value_type")

    def __init__(self, owner: Any, attr: str, value_type: Any = None) -> None:
        self.owner = owner
        self.attr = attr
        self.value_type = value_type

    def get(self) -> Any:
        return getattr(self.owner, self.attr)

    def set(self, value: Any) -> None:
        """Assign a value read from the database.

        Values for ``Scanner`` field types are converted with ``from_sql``.
        Drivers without native temporal or boolean columns (sqlite3) return
        ISO strings and integers; those are converted to the declared type.

        Raises:
            TypeError: the value cannot be stored in the declared type.
            ValueError: a temporal string is not in ISO format.
        """
        if value is not None:
            value = _coerce(self.value_type, value)
        setattr(self.owner, self.attr, value)

    def __repr__(self) -> str:
        return f"FieldRef({type(self.owner).__name__}.{self.attr})"


class _Discard:
    """Scan target for columns that have no record field."""

    __slots__ = ()

    def get(self) -> None:
        return None

    def set(self, value: Any) -> None:
        pass

    def __repr__(self) -> str:
        return "DISCARD"


DISCARD = _Discard()


_TEMPORAL = (
    (datetime.datetime, datetime.datetime.fromisoformat),
    (datetime.date, datetime.date.fromisoformat),
    (datetime.time, datetime.time.fromisoformat),
)


def _coerce(value_type: Any, value: Any) -> Any:
    target, _ = unwrap_optional(value_type)
    if is_scanner(target):
        return value if isinstance(value, target) else target.from_sql(value)

    target = supertype(target)
    for temporal, parse in _TEMPORAL:
        if target is not temporal:
            continue
        if isinstance(value, (bytes, bytearray)):
            value = value.decode()
        if isinstance(value, str):
            return parse(value)
        if type(value) is datetime.datetime and temporal is datetime.date:
            return value.date()
        if isinstance(value, temporal):
            return value
        raise TypeError(
            f"cannot store {type(value).__name__} in {temporal.__name__} field"
        )

    if target is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise TypeError(f"cannot store {value!r} in bool field")

    return value


class ValueMap(dict[str, FieldRef]):
    """Mapping of column name → ``FieldRef`` for one record instance."""

    def map_to_columns(self, columns: Iterable[str]) -> list[FieldRef | _Discard]:
        """References in result-column order; unknown columns map to ``DISCARD``."""
        return [self.get(column, DISCARD) for column in columns]

    def map_to_fields(self, fields: Iterable[Field]) -> list[FieldRef | _Discard]:
        """References in selected-field order."""
        return [self.get(field.name, DISCARD) for field in fields]

    def scan(self, columns: Sequence[str], row: Sequence[Any]) -> None:
        """Assign one result row to the record."""
        for ref, value in zip(self.map_to_columns(columns), row):
            ref.set(value)

    def bind(self, fields: Iterable[Field]) -> list[Any]:
        """Current values in selected-field order, ready to bind as params."""
        return [ref.get() for ref in self.map_to_fields(fields)]


def to_param(value: Any) -> Any:
    """Driver-ready form of a bound value (``Scanner`` values use ``to_sql``)."""
    if is_scanner(type(value)):
        return value.to_sql()
    return value


def values(record: Any) -> ValueMap:
    """Build the ``ValueMap`` of a record instance.

    Raises:
        InvalidRecordError: ``record`` is a class or not a record.
    """
    if isinstance(record, type) or not is_record(type(record)):
        raise InvalidRecordError(f"{record!r} is not a record instance")
    return _collect(record, ValueMap())


def _collect(record: Any, value_map: ValueMap) -> ValueMap:
    for spec in describe(record):
        info = extract_field_info(spec)

        if info.ignore:
            continue
        if info.inline:
            nested = getattr(record, spec.name, None)
            if nested is None:
                nested = blank(spec.type)
                setattr(record, spec.name, nested)
            _collect(nested, value_map)
        else:
            value_map[info.name] = FieldRef(record, spec.name, spec.type)

    return value_map


__all__ = [
    "FieldRef",
    "DISCARD",
    "ValueMap",
    "to_param",
    "values",
]
