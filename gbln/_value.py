"""GBLN value model.

A Value is a node in a strictly typed tree.  There is a single class with
a ``kind`` tag rather than a subclass per variant; dispatch everywhere is
an exhaustive branch over ValueType.

Ownership: a container owns its children.  A child may be attached to at
most one parent, and a container may never be inserted into its own
subtree, so the tree stays a tree.  Nesting is capped at MAX_DEPTH
containers on any path, the same limit the parser enforces, so every
tree that can be built can also be parsed back.  When insert/push
rejects a child the child is left detached and handed back on the
raised error.
"""

from __future__ import annotations

import enum
import math
import re
import struct
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ._constants import FLOAT32_MAX, INT_RANGES, MAX_DEPTH
from ._errors import ErrorKind, GblnError, reports_diagnostics


class ValueType(enum.IntEnum):
    """Variant tags.  The integer values are stable type codes."""

    I8 = 0
    I16 = 1
    I32 = 2
    I64 = 3
    U8 = 4
    U16 = 5
    U32 = 6
    U64 = 7
    F32 = 8
    F64 = 9
    STR = 10
    BOOL = 11
    NULL = 12
    OBJECT = 13
    ARRAY = 14

    @property
    def suffix(self) -> Optional[str]:
        """Width tag spelling for numeric kinds, else None."""
        if self <= ValueType.F64:
            return self.name.lower()
        return None


INTEGER_KINDS = frozenset(ValueType(i) for i in range(0, 8))
FLOAT_KINDS = frozenset((ValueType.F32, ValueType.F64))

KIND_BY_SUFFIX: Dict[str, ValueType] = {
    t.suffix: t for t in ValueType if t.suffix is not None
}


def round_f32(x: float) -> float:
    """Round a Python float to the nearest binary32 value.

    Raises OverflowError when the magnitude is beyond binary32 range.
    """
    return struct.unpack("<f", struct.pack("<f", x))[0]


def _check_int(kind: ValueType, n: Any) -> int:
    # bool is a subclass of int; True must not become i8 1.
    if isinstance(n, bool) or not isinstance(n, int):
        raise GblnError(
            ErrorKind.TYPE_MISMATCH,
            "{} value must be an int, got {}".format(kind.suffix, type(n).__name__),
        )
    lo, hi = INT_RANGES[kind.suffix]
    if n < lo or n > hi:
        raise GblnError(
            ErrorKind.INT_OUT_OF_RANGE,
            "integer {} out of range for {} ({} to {})".format(n, kind.suffix, lo, hi),
        )
    return n


def _check_float(kind: ValueType, x: Any) -> float:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise GblnError(
            ErrorKind.TYPE_MISMATCH,
            "{} value must be a float, got {}".format(kind.suffix, type(x).__name__),
        )
    try:
        x = float(x)
    except OverflowError:
        raise GblnError(
            ErrorKind.INT_OUT_OF_RANGE,
            "integer too large for {}".format(kind.suffix),
        ) from None
    if not math.isfinite(x):
        raise GblnError(
            ErrorKind.TYPE_MISMATCH,
            "non-finite float {!r} has no GBLN spelling".format(x),
        )
    if kind is ValueType.F32:
        if abs(x) > FLOAT32_MAX:
            raise GblnError(
                ErrorKind.INT_OUT_OF_RANGE,
                "float {!r} out of range for f32".format(x),
                suggestion="use f64",
            )
        try:
            x = round_f32(x)
        except OverflowError:
            raise GblnError(
                ErrorKind.INT_OUT_OF_RANGE,
                "float {!r} out of range for f32".format(x),
                suggestion="use f64",
            )
    return x


_SURROGATE_RE = re.compile("[\ud800-\udfff]")


def _ensure_no_surrogates(s: str, what: str) -> None:
    # Lone surrogates have no UTF-8 encoding, so they could never be written.
    m = _SURROGATE_RE.search(s)
    if m is not None:
        raise GblnError(
            ErrorKind.TYPE_MISMATCH,
            "surrogate U+{:04X} in {}".format(ord(m.group()), what),
            suggestion="strings must be valid Unicode scalar values",
        )


def _check_string(s: Any, max_len: Optional[int]) -> str:
    if not isinstance(s, str):
        raise GblnError(
            ErrorKind.TYPE_MISMATCH,
            "string value must be a str, got {}".format(type(s).__name__),
        )
    _ensure_no_surrogates(s, "string value")
    if max_len is not None:
        if isinstance(max_len, bool) or not isinstance(max_len, int) or max_len < 0:
            raise GblnError(
                ErrorKind.INVALID_TYPE_HINT,
                "string bound must be a non-negative int, got {!r}".format(max_len),
            )
        if len(s) > max_len:
            raise GblnError(
                ErrorKind.STRING_TOO_LONG,
                "string of length {} exceeds s{} limit".format(len(s), max_len),
                suggestion="use s{} or a wider bound".format(len(s)),
            )
    return s


_ZERO: Dict[ValueType, Any] = {
    ValueType.F32: 0.0,
    ValueType.F64: 0.0,
    ValueType.STR: "",
    ValueType.BOOL: False,
}


class Value:
    """A typed GBLN tree node."""

    __slots__ = ("kind", "_data", "_max_len", "_parent")

    def __init__(self, kind: ValueType, data: Any = None,
                 max_len: Optional[int] = None) -> None:
        self.kind = kind
        self._data = data
        self._max_len = max_len
        self._parent = None

    # ── Constructors ──────────────────────────────────────────

    @classmethod
    @reports_diagnostics
    def i8(cls, n: int) -> "Value":
        return cls(ValueType.I8, _check_int(ValueType.I8, n))

    @classmethod
    @reports_diagnostics
    def i16(cls, n: int) -> "Value":
        return cls(ValueType.I16, _check_int(ValueType.I16, n))

    @classmethod
    @reports_diagnostics
    def i32(cls, n: int) -> "Value":
        return cls(ValueType.I32, _check_int(ValueType.I32, n))

    @classmethod
    @reports_diagnostics
    def i64(cls, n: int) -> "Value":
        return cls(ValueType.I64, _check_int(ValueType.I64, n))

    @classmethod
    @reports_diagnostics
    def u8(cls, n: int) -> "Value":
        return cls(ValueType.U8, _check_int(ValueType.U8, n))

    @classmethod
    @reports_diagnostics
    def u16(cls, n: int) -> "Value":
        return cls(ValueType.U16, _check_int(ValueType.U16, n))

    @classmethod
    @reports_diagnostics
    def u32(cls, n: int) -> "Value":
        return cls(ValueType.U32, _check_int(ValueType.U32, n))

    @classmethod
    @reports_diagnostics
    def u64(cls, n: int) -> "Value":
        return cls(ValueType.U64, _check_int(ValueType.U64, n))

    @classmethod
    @reports_diagnostics
    def f32(cls, x: float) -> "Value":
        return cls(ValueType.F32, _check_float(ValueType.F32, x))

    @classmethod
    @reports_diagnostics
    def f64(cls, x: float) -> "Value":
        return cls(ValueType.F64, _check_float(ValueType.F64, x))

    @classmethod
    @reports_diagnostics
    def number(cls, kind: ValueType, n: Any) -> "Value":
        """Build a numeric value of the given width."""
        if kind in INTEGER_KINDS:
            return cls(kind, _check_int(kind, n))
        if kind in FLOAT_KINDS:
            return cls(kind, _check_float(kind, n))
        raise GblnError(ErrorKind.TYPE_MISMATCH,
                        "{} is not a numeric kind".format(kind.name))

    @classmethod
    @reports_diagnostics
    def string(cls, s: str, max_len: Optional[int] = None) -> "Value":
        """Build a string value.  ``max_len`` None means unbounded."""
        return cls(ValueType.STR, _check_string(s, max_len), max_len)

    @classmethod
    @reports_diagnostics
    def boolean(cls, b: bool) -> "Value":
        if not isinstance(b, bool):
            raise GblnError(ErrorKind.TYPE_MISMATCH,
                            "bool value must be a bool, got {}".format(type(b).__name__))
        return cls(ValueType.BOOL, b)

    @classmethod
    def null(cls) -> "Value":
        return cls(ValueType.NULL)

    @classmethod
    def object(cls) -> "Value":
        return cls(ValueType.OBJECT, {})

    @classmethod
    def array(cls) -> "Value":
        return cls(ValueType.ARRAY, [])

    # ── Type queries ──────────────────────────────────────────

    @property
    def is_integer(self) -> bool:
        return self.kind in INTEGER_KINDS

    @property
    def is_float(self) -> bool:
        return self.kind in FLOAT_KINDS

    @property
    def is_numeric(self) -> bool:
        return self.kind <= ValueType.F64

    def is_null(self) -> bool:
        return self.kind is ValueType.NULL

    @property
    def max_len(self) -> Optional[int]:
        """Declared bound of a string value (None if unbounded or not a string)."""
        return self._max_len

    @property
    def owned(self) -> bool:
        """True once this value has been attached to a container."""
        return self._parent is not None

    # ── Typed accessors ───────────────────────────────────────
    # Each returns (value, ok).  A kind mismatch is a type-check
    # result, not an error: ok is False and value is the zero value.

    def _as(self, kind: ValueType) -> Tuple[Any, bool]:
        if self.kind is kind:
            return self._data, True
        return _ZERO.get(kind, 0), False

    def as_i8(self) -> Tuple[int, bool]:
        return self._as(ValueType.I8)

    def as_i16(self) -> Tuple[int, bool]:
        return self._as(ValueType.I16)

    def as_i32(self) -> Tuple[int, bool]:
        return self._as(ValueType.I32)

    def as_i64(self) -> Tuple[int, bool]:
        return self._as(ValueType.I64)

    def as_u8(self) -> Tuple[int, bool]:
        return self._as(ValueType.U8)

    def as_u16(self) -> Tuple[int, bool]:
        return self._as(ValueType.U16)

    def as_u32(self) -> Tuple[int, bool]:
        return self._as(ValueType.U32)

    def as_u64(self) -> Tuple[int, bool]:
        return self._as(ValueType.U64)

    def as_f32(self) -> Tuple[float, bool]:
        return self._as(ValueType.F32)

    def as_f64(self) -> Tuple[float, bool]:
        return self._as(ValueType.F64)

    def as_str(self) -> Tuple[str, bool]:
        return self._as(ValueType.STR)

    def as_bool(self) -> Tuple[bool, bool]:
        return self._as(ValueType.BOOL)

    @property
    def scalar(self) -> Any:
        """Raw payload of a scalar value (None for null and containers)."""
        if self.kind in (ValueType.OBJECT, ValueType.ARRAY):
            return None
        return self._data

    # ── Container access ──────────────────────────────────────

    def get(self, key: str) -> Optional["Value"]:
        """Object field lookup; None if absent or not an object."""
        if self.kind is not ValueType.OBJECT:
            return None
        return self._data.get(key)

    def at(self, index: int) -> Optional["Value"]:
        """Array element lookup; None if out of range or not an array."""
        if self.kind is not ValueType.ARRAY:
            return None
        if index < 0 or index >= len(self._data):
            return None
        return self._data[index]

    def object_len(self) -> int:
        return len(self._data) if self.kind is ValueType.OBJECT else 0

    def array_len(self) -> int:
        return len(self._data) if self.kind is ValueType.ARRAY else 0

    def keys(self) -> List[str]:
        return list(self._data) if self.kind is ValueType.OBJECT else []

    def items(self) -> Iterator[Tuple[str, "Value"]]:
        if self.kind is ValueType.OBJECT:
            return iter(list(self._data.items()))
        return iter(())

    def elements(self) -> Iterator["Value"]:
        if self.kind is ValueType.ARRAY:
            return iter(list(self._data))
        return iter(())

    # ── Mutation ──────────────────────────────────────────────

    def _check_adoptable(self, child: Any) -> None:
        if child is None:
            raise GblnError(ErrorKind.NULL_ARGUMENT, "child value is None")
        if not isinstance(child, Value):
            raise GblnError(
                ErrorKind.TYPE_MISMATCH,
                "child must be a Value, got {}".format(type(child).__name__),
                suggestion="wrap native data with from_python()",
                rejected=child,
            )
        if child._parent is not None:
            raise GblnError(
                ErrorKind.TYPE_MISMATCH,
                "value already belongs to another container",
                suggestion="insert value.copy() instead",
                rejected=child,
            )
        level = 0
        node: Optional[Value] = self
        while node is not None:
            if node is child:
                raise GblnError(
                    ErrorKind.TYPE_MISMATCH,
                    "inserting a container into its own subtree would create a cycle",
                    rejected=child,
                )
            level += 1
            node = node._parent
        if level + child._height() > MAX_DEPTH:
            raise GblnError(
                ErrorKind.INVALID_SYNTAX,
                "nesting exceeds maximum depth of {}".format(MAX_DEPTH),
                suggestion="flatten the structure",
                rejected=child,
            )

    def _height(self) -> int:
        # Containers on the longest downward path, this one included.
        best = 0
        stack = [(self, 1)]
        while stack:
            cur, depth = stack.pop()
            if cur.kind is ValueType.OBJECT:
                children = cur._data.values()
            elif cur.kind is ValueType.ARRAY:
                children = cur._data
            else:
                continue
            if depth > best:
                best = depth
            stack.extend((c, depth + 1) for c in children)
        return best

    @reports_diagnostics
    def insert(self, key: str, child: "Value") -> None:
        """Insert a field, taking ownership of ``child``.

        Raises GblnError (NullArgument, TypeMismatch, DuplicateKey, or
        InvalidSyntax when the result would nest deeper than MAX_DEPTH)
        and leaves the object unchanged if the child is rejected; the
        child is returned on the error's ``rejected`` attribute.
        """
        if key is None:
            raise GblnError(ErrorKind.NULL_ARGUMENT, "object key is None", rejected=child)
        if self.kind is not ValueType.OBJECT:
            raise GblnError(
                ErrorKind.TYPE_MISMATCH,
                "insert on {} value; target must be an object".format(self.kind.name),
                rejected=child,
            )
        if not isinstance(key, str):
            raise GblnError(
                ErrorKind.TYPE_MISMATCH,
                "object key must be a str, got {}".format(type(key).__name__),
                rejected=child,
            )
        try:
            _ensure_no_surrogates(key, "object key")
        except GblnError as e:
            e.rejected = child
            raise
        self._check_adoptable(child)
        if key in self._data:
            raise GblnError(
                ErrorKind.DUPLICATE_KEY,
                "duplicate key {!r}".format(key),
                suggestion="rename or remove one of the {!r} fields".format(key),
                rejected=child,
            )
        child._parent = self
        self._data[key] = child

    @reports_diagnostics
    def push(self, child: "Value") -> None:
        """Append an element, taking ownership of ``child``."""
        if self.kind is not ValueType.ARRAY:
            raise GblnError(
                ErrorKind.TYPE_MISMATCH,
                "push on {} value; target must be an array".format(self.kind.name),
                rejected=child,
            )
        self._check_adoptable(child)
        child._parent = self
        self._data.append(child)

    def _adopt(self, child: "Value", key: Optional[str] = None) -> None:
        # Parser fast path: children are freshly built, so ownership and
        # cycle checks cannot fail; key uniqueness and depth are checked
        # by the caller.
        child._parent = self
        if key is None:
            self._data.append(child)
        else:
            self._data[key] = child

    # ── Conversion / comparison ───────────────────────────────

    def copy(self) -> "Value":
        """Deep copy; the result is detached from any parent."""
        if self.kind is ValueType.OBJECT:
            out = Value.object()
            for k, v in self._data.items():
                out._adopt(v.copy(), k)
            return out
        if self.kind is ValueType.ARRAY:
            out = Value.array()
            for v in self._data:
                out._adopt(v.copy())
            return out
        return Value(self.kind, self._data, self._max_len)

    def to_python(self) -> Any:
        """Natural Python value; widths and string bounds are dropped."""
        if self.kind is ValueType.OBJECT:
            return {k: v.to_python() for k, v in self._data.items()}
        if self.kind is ValueType.ARRAY:
            return [v.to_python() for v in self._data]
        return self._data

    def content_eq(self, other: "Value") -> bool:
        """Compare content only, ignoring numeric widths and string bounds."""
        return _content_key(self) == _content_key(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind is not other.kind or self._max_len != other._max_len:
            return False
        if self.kind is ValueType.OBJECT:
            # Objects are ordered mappings; dict equality would ignore order.
            return list(self._data.items()) == list(other._data.items())
        if self.kind in FLOAT_KINDS:
            # -0.0 and 0.0 serialize differently.
            return (self._data == other._data
                    and math.copysign(1.0, self._data) == math.copysign(1.0, other._data))
        return self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.kind is ValueType.NULL:
            return "Value.null()"
        if self.kind is ValueType.STR and self._max_len is not None:
            return "Value.string({!r}, max_len={})".format(self._data, self._max_len)
        if self.kind is ValueType.STR:
            return "Value.string({!r})".format(self._data)
        if self.kind is ValueType.BOOL:
            return "Value.boolean({!r})".format(self._data)
        if self.kind in (ValueType.OBJECT, ValueType.ARRAY):
            return "Value({}, {!r})".format(self.kind.name, self._data)
        return "Value.{}({!r})".format(self.kind.suffix, self._data)


def _content_key(v: Value) -> Any:
    # Tags numbers/bools so True and 1 stay distinct.
    if v.kind is ValueType.OBJECT:
        return ("o", [(k, _content_key(c)) for k, c in v._data.items()])
    if v.kind is ValueType.ARRAY:
        return ("a", [_content_key(c) for c in v._data])
    if v.is_numeric:
        return ("n", v._data)
    return (v.kind.name, v._data)


# ── Module-level constructor aliases ──────────────────────────

new_i8 = Value.i8
new_i16 = Value.i16
new_i32 = Value.i32
new_i64 = Value.i64
new_u8 = Value.u8
new_u16 = Value.u16
new_u32 = Value.u32
new_u64 = Value.u64
new_f32 = Value.f32
new_f64 = Value.f64
new_str = Value.string
new_bool = Value.boolean
new_null = Value.null
new_object = Value.object
new_array = Value.array
