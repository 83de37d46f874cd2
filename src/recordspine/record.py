"""Record descriptors and the field extractor.

A record type is described once by an ordered tuple of ``FieldSpec``
entries (declared name, declared type, raw tag).  Dataclasses are described
from ``dataclasses.fields()``; any other class supplies its list through
``register_record``.  Descriptors are cached per type, so nothing walks a
class more than once.

Tags use the format ``"<overrideName>,<overrideDataType>"``.  Either half may
be empty and ``"-"`` as the name excludes the field::

    @dataclass
    class User:
        ID: UInt64 = column(",BIGINT UNSIGNED NOT NULL AUTO_INCREMENT", default=0)
        Name: str = ""
        Age: Optional[int] = column("age", default=None)
        Session: str = column("-", default="")
        Audit: AuditInfo = field(default_factory=AuditInfo)  # flattened
"""

from __future__ import annotations

import dataclasses
import datetime
import types
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from recordspine.errors import InvalidFieldTypeError, InvalidRecordError
from recordspine.protocols import Scanner
from recordspine.sqltypes import supertype, unwrap_optional

if TYPE_CHECKING:
    from recordspine.dialect import Dialect

TAG_KEY = "db"
IGNORE = "-"

_TIMESTAMP_TYPES = (datetime.datetime, datetime.date, datetime.time)
_ZERO_VALUES: dict[type, Any] = {str: "", int: 0, float: 0.0, bool: False, bytes: b""}

# Explicitly registered and lazily described record types.
_DESCRIPTORS: dict[type, tuple[FieldSpec, ...]] = {}


@dataclass(frozen=True)
class FieldSpec:
    """One declared record field: name, value type and raw tag."""

    name: str
    type: Any
    tag: str = ""


@dataclass(frozen=True)
class FieldInfo:
    """Result of extracting one field."""

    name: str
    data_type: str = ""
    ignore: bool = False
    inline: bool = False


def column(tag: str = "", **kwargs: Any) -> Any:
    """``dataclasses.field`` with a record-spine tag attached.

    Example:
        Nationality: str = column(",VARCHAR(64) NULL", default="")
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def register_record(record_type: type, *specs: FieldSpec | tuple) -> type:
    """Register the ordered field list of a non-dataclass record type.

    Each spec is a ``FieldSpec`` or a ``(name, type)`` / ``(name, type, tag)``
    tuple.  Returns ``record_type`` so it can be used right after a class
    statement.
    """
    if not isinstance(record_type, type):
        raise InvalidRecordError(f"cannot register {record_type!r}: not a class")
    _DESCRIPTORS[record_type] = tuple(
        spec if isinstance(spec, FieldSpec) else FieldSpec(*spec) for spec in specs
    )
    return record_type


def _is_class(value_type: Any) -> bool:
    # list[int] passes isinstance(..., type) on 3.10 but breaks issubclass
    return isinstance(value_type, type) and not isinstance(value_type, types.GenericAlias)


def is_record(value_type: Any) -> bool:
    """Whether ``value_type`` is a record type (registered or dataclass)."""
    if not _is_class(value_type):
        return False
    return value_type in _DESCRIPTORS or dataclasses.is_dataclass(value_type)


def is_scanner(value_type: Any) -> bool:
    """Whether ``value_type`` implements the ``Scanner`` capability."""
    return _is_class(value_type) and issubclass(value_type, Scanner)


def is_scalar_like(value_type: Any) -> bool:
    """Whether a record-shaped type should be stored as a single column."""
    if not _is_class(value_type):
        return False
    return issubclass(value_type, _TIMESTAMP_TYPES) or is_scanner(value_type)


def record_type(record: Any) -> type:
    """Return the record type of a record instance or record type."""
    cls = record if isinstance(record, type) else type(record)
    if not is_record(cls):
        raise InvalidRecordError(f"{cls.__qualname__} is not a record type")
    return cls


def describe(record: Any) -> tuple[FieldSpec, ...]:
    """Return the cached, ordered field descriptor of a record."""
    cls = record_type(record)
    specs = _DESCRIPTORS.get(cls)
    if specs is None:
        specs = _describe_dataclass(cls)
        _DESCRIPTORS[cls] = specs
    return specs


def _describe_dataclass(cls: type) -> tuple[FieldSpec, ...]:
    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError) as exc:
        raise InvalidRecordError(
            f"cannot resolve field annotations of {cls.__qualname__}: {exc}"
        ) from exc
    return tuple(
        FieldSpec(f.name, hints.get(f.name, f.type), f.metadata.get(TAG_KEY, ""))
        for f in dataclasses.fields(cls)
    )


def extract_field_info(spec: FieldSpec, dialect: Dialect | None = None) -> FieldInfo:
    """Resolve one declared field into its column name and SQL type.

    The override data type from the tag wins and the dialect is never asked
    about it.  Record-typed fields that are not scalar-like come back with
    ``inline=True`` and no data type; the caller flattens them.  Without a
    dialect only the name is resolved.

    Raises:
        InvalidFieldTypeError: the dialect has no mapping for the field type.
    """
    name = spec.name
    tag_parts = spec.tag.split(",", 1)

    if tag_parts[0]:
        name = tag_parts[0]
    if name == IGNORE:
        return FieldInfo(name, ignore=True)

    data_type = tag_parts[1] if len(tag_parts) == 2 else ""
    if data_type:
        return FieldInfo(name, data_type)

    if is_record(spec.type) and not is_scalar_like(spec.type):
        return FieldInfo(name, inline=True)

    if dialect is not None:
        data_type, ok = dialect.type_map(spec.type)
        if not ok:
            raise InvalidFieldTypeError(spec.name, spec.type, dialect.name)

    return FieldInfo(name, data_type)


def zero_value(value_type: Any) -> Any:
    """The empty value of a field type: ``0``, ``""``, ``None``, ..."""
    inner, nullable = unwrap_optional(value_type)
    if nullable:
        return None
    if is_record(inner) and not is_scalar_like(inner):
        return blank(inner)
    return _ZERO_VALUES.get(supertype(inner))


def blank(record: type) -> Any:
    """Build a fresh record instance with defaults or zero values.

    Dataclass fields keep their declared defaults; fields without one get the
    zero value of their type and nested records are built recursively.
    Registered non-dataclass types must be constructible without arguments.
    """
    cls = record_type(record)
    if not dataclasses.is_dataclass(cls):
        return cls()

    hints = {spec.name: spec.type for spec in describe(cls)}
    kwargs = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        if f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING:
            continue
        kwargs[f.name] = zero_value(hints[f.name])
    return cls(**kwargs)


__all__ = [
    "TAG_KEY",
    "IGNORE",
    "FieldSpec",
    "FieldInfo",
    "column",
    "register_record",
    "is_record",
    "is_scanner",
    "is_scalar_like",
    "record_type",
    "describe",
    "extract_field_info",
    "zero_value",
    "blank",
]
