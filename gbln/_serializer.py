"""GBLN serializer: Value tree -> compact or pretty text.

Both modes obey one suffix rule: i64 and f64 are the parser's defaults
and are written bare; every other numeric width always carries its
suffix, and bounded strings carry ``s<N>``.  That keeps
``parse(serialize(v)) == v`` exact, widths and bounds included.

Serialization is total over well-formed trees.
"""

from __future__ import annotations

import re
from typing import List, Optional

from ._config import Config, SOURCE_CONFIG
from ._constants import FLOAT32_MAX
from ._errors import ErrorKind, GblnError, reports_diagnostics
from ._value import Value, ValueType, round_f32

_NEEDS_ESCAPE = re.compile(r'["\\\x00-\x1f]')

_NAMED_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def _escape_char(m: "re.Match[str]") -> str:
    ch = m.group(0)
    return _NAMED_ESCAPES.get(ch) or "\\u{:04x}".format(ord(ch))


def quote(s: str) -> str:
    """Quote a string with minimal escaping; non-ASCII passes through."""
    return '"' + _NEEDS_ESCAPE.sub(_escape_char, s) + '"'


def format_f32(x: float) -> str:
    """Shortest decimal that reads back as the same binary32 value."""
    for precision in range(1, 10):
        candidate = float("{:.{}g}".format(x, precision))
        # Near the top of the range a short candidate can overshoot it.
        if abs(candidate) <= FLOAT32_MAX and round_f32(candidate) == x:
            return repr(candidate)
    return repr(x)


def _scalar(v: Value) -> str:
    kind = v.kind
    data = v.scalar
    if kind is ValueType.I64:
        return str(data)
    if v.is_integer:
        return "{}{}".format(data, kind.suffix)
    if kind is ValueType.F64:
        return repr(data)
    if kind is ValueType.F32:
        return format_f32(data) + "f32"
    if kind is ValueType.STR:
        if v.max_len is None:
            return quote(data)
        return "{}s{}".format(quote(data), v.max_len)
    if kind is ValueType.BOOL:
        return "true" if data else "false"
    return "null"


def _write_compact(v: Value, out: List[str]) -> None:
    if v.kind is ValueType.OBJECT:
        out.append("{")
        for i, (k, child) in enumerate(v.items()):
            if i:
                out.append(",")
            out.append(quote(k))
            out.append(":")
            _write_compact(child, out)
        out.append("}")
    elif v.kind is ValueType.ARRAY:
        out.append("[")
        for i, child in enumerate(v.elements()):
            if i:
                out.append(",")
            _write_compact(child, out)
        out.append("]")
    else:
        out.append(_scalar(v))


def _write_pretty(v: Value, out: List[str], level: int, indent: int) -> None:
    if v.kind is ValueType.OBJECT:
        if not v.object_len():
            out.append("{}")
            return
        inner = " " * (indent * (level + 1))
        out.append("{\n")
        for i, (k, child) in enumerate(v.items()):
            if i:
                out.append(",\n")
            out.append(inner)
            out.append(quote(k))
            out.append(": ")
            _write_pretty(child, out, level + 1, indent)
        out.append("\n")
        out.append(" " * (indent * level))
        out.append("}")
    elif v.kind is ValueType.ARRAY:
        if not v.array_len():
            out.append("[]")
            return
        inner = " " * (indent * (level + 1))
        out.append("[\n")
        for i, child in enumerate(v.elements()):
            if i:
                out.append(",\n")
            out.append(inner)
            _write_pretty(child, out, level + 1, indent)
        out.append("\n")
        out.append(" " * (indent * level))
        out.append("]")
    else:
        out.append(_scalar(v))


def _require_value(value: Optional[Value]) -> Value:
    if value is None:
        raise GblnError(ErrorKind.NULL_ARGUMENT, "value is None")
    if not isinstance(value, Value):
        raise GblnError(ErrorKind.TYPE_MISMATCH,
                        "expected a Value, got {}".format(type(value).__name__),
                        suggestion="convert native data with from_python()")
    return value


@reports_diagnostics
def serialize_compact(value: Value) -> str:
    """MINI form: no whitespace at all."""
    out: List[str] = []
    _write_compact(_require_value(value), out)
    return "".join(out)


@reports_diagnostics
def serialize_pretty(value: Value, config: Optional[Config] = None,
                     indent: Optional[int] = None) -> str:
    """Source form: one field or element per line.

    ``indent`` overrides ``config.indent``.  strip_comments has nothing to
    act on here, because a Value tree carries no comments.
    """
    cfg = config or SOURCE_CONFIG
    width = cfg.indent if indent is None else cfg.with_indent(indent).indent
    out: List[str] = []
    _write_pretty(_require_value(value), out, 0, width)
    return "".join(out)


@reports_diagnostics
def serialize(value: Value, config: Optional[Config] = None) -> str:
    """Serialize according to ``config.mini_mode`` (default: compact)."""
    if config is None or config.mini_mode:
        return serialize_compact(value)
    return serialize_pretty(value, config)
