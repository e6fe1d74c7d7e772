"""Conversion between native Python data and GBLN Values.

from_python() picks the narrowest GBLN type for each native value:

  - None   -> null
  - bool   -> bool            (checked before int: bool subclasses int)
  - int    -> smallest of i8/i16/i32/i64; u64 above INT64_MAX
  - float  -> f64
  - str    -> string bounded to s64 / s256 / s1024 by length
  - Mapping with str keys -> object (iteration order kept)
  - list / tuple          -> array
  - Value  -> detached deep copy
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from ._config import Config
from ._constants import AUTO_STRING_BOUNDS, INT_RANGES, MAX_DEPTH, UINT64_MAX
from ._errors import ErrorKind, GblnError, reports_diagnostics
from ._parser import parse
from ._serializer import serialize
from ._value import Value, ValueType

_SIGNED_ORDER = (
    (ValueType.I8, INT_RANGES["i8"]),
    (ValueType.I16, INT_RANGES["i16"]),
    (ValueType.I32, INT_RANGES["i32"]),
    (ValueType.I64, INT_RANGES["i64"]),
)


def _int_value(n: int) -> Value:
    for kind, (lo, hi) in _SIGNED_ORDER:
        if lo <= n <= hi:
            return Value(kind, n)
    if 0 < n <= UINT64_MAX:
        return Value(ValueType.U64, n)
    raise GblnError(ErrorKind.INT_OUT_OF_RANGE,
                    "integer {} does not fit any GBLN width".format(n))


def _str_value(s: str) -> Value:
    for bound in AUTO_STRING_BOUNDS:
        if len(s) <= bound:
            return Value.string(s, bound)
    raise GblnError(
        ErrorKind.STRING_TOO_LONG,
        "string too long: {} characters (max {})".format(len(s), AUTO_STRING_BOUNDS[-1]),
        suggestion="build it with Value.string(s, max_len=...) for a wider bound",
    )


@reports_diagnostics
def from_python(obj: Any) -> Value:
    """Convert native data to a Value tree."""
    return _from_python(obj, 0)


def _enter_container(depth: int) -> None:
    # Also stops self-referencing lists and dicts.
    if depth >= MAX_DEPTH:
        raise GblnError(ErrorKind.INVALID_SYNTAX,
                        "nesting exceeds maximum depth of {}".format(MAX_DEPTH),
                        suggestion="flatten the structure")


def _from_python(obj: Any, depth: int) -> Value:
    if obj is None:
        return Value.null()

    if isinstance(obj, Value):
        return obj.copy()

    if isinstance(obj, bool):
        return Value.boolean(obj)

    if isinstance(obj, int):
        return _int_value(obj)

    if isinstance(obj, float):
        return Value.f64(obj)

    if isinstance(obj, str):
        return _str_value(obj)

    if isinstance(obj, Mapping):
        _enter_container(depth)
        out = Value.object()
        for k, v in obj.items():
            if not isinstance(k, str):
                raise GblnError(ErrorKind.TYPE_MISMATCH,
                                "object key must be a str, got {}".format(type(k).__name__))
            out.insert(k, _from_python(v, depth + 1))
        return out

    if isinstance(obj, (list, tuple)):
        _enter_container(depth)
        out = Value.array()
        for item in obj:
            out.push(_from_python(item, depth + 1))
        return out

    raise GblnError(ErrorKind.TYPE_MISMATCH,
                    "unsupported type: {}".format(type(obj).__name__))


@reports_diagnostics
def to_python(value: Value) -> Any:
    """Natural Python projection of a Value; widths and bounds are lost."""
    if value is None:
        raise GblnError(ErrorKind.NULL_ARGUMENT, "value is None")
    return value.to_python()


@reports_diagnostics
def loads(text: str, max_string_len: Optional[int] = None) -> Any:
    """Parse GBLN text straight to native Python data."""
    return parse(text, max_string_len=max_string_len).to_python()


@reports_diagnostics
def dumps(obj: Any, config: Optional[Config] = None) -> str:
    """Serialize native Python data (or a Value) to GBLN text."""
    value = obj if isinstance(obj, Value) else from_python(obj)
    return serialize(value, config)
