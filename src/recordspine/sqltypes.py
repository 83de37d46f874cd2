"""Host value types for record fields.

Python has a single ``int`` and a single ``float``.  Column widths are
declared with ``NewType`` markers so a record can say ``age: Int8`` and get
``TINYINT`` while the runtime value stays a plain ``int``.
"""

from __future__ import annotations

import types
from typing import Any, NewType, Union, get_args, get_origin

Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)

UInt8 = NewType("UInt8", int)
UInt16 = NewType("UInt16", int)
UInt32 = NewType("UInt32", int)
UInt64 = NewType("UInt64", int)

Float32 = NewType("Float32", float)
Float64 = NewType("Float64", float)

_NONE_TYPE = type(None)


def unwrap_optional(value_type: Any) -> tuple[Any, bool]:
    """Split ``Optional[X]`` / ``X | None`` into ``(X, True)``.

    Any other annotation is returned unchanged with ``False``.  Unions of more
    than one non-None member are not nullable scalars and are left alone.
    """
    origin = get_origin(value_type)
    if origin is Union or origin is types.UnionType:
        args = get_args(value_type)
        members = [arg for arg in args if arg is not _NONE_TYPE]
        if len(members) == 1 and len(args) == 2:
            return members[0], True
    return value_type, False


def supertype(value_type: Any) -> Any:
    """Resolve a ``NewType`` chain to the runtime class it wraps."""
    while hasattr(value_type, "__supertype__"):
        value_type = value_type.__supertype__
    return value_type


__all__ = [
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
    "unwrap_optional",
    "supertype",
]
