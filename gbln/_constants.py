"""GBLN constants: width tags, numeric ranges, file magic and limits.

Width tags are the suffix spellings accepted by the parser and emitted by
the serializer.  I64 and F64 are the implicit defaults and are never
written out.
"""

from __future__ import annotations

import re
from typing import Dict, Tuple

__format_version__ = "1.0.0"

# ── Integer ranges ────────────────────────────────────────────
# Python ints are arbitrary-precision, so every width is range-checked
# explicitly at construction and at parse time.
INT8_MIN, INT8_MAX = -(2**7), 2**7 - 1
INT16_MIN, INT16_MAX = -(2**15), 2**15 - 1
INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1
UINT8_MAX = 2**8 - 1
UINT16_MAX = 2**16 - 1
UINT32_MAX = 2**32 - 1
UINT64_MAX = 2**64 - 1

# Largest finite binary32 value.
FLOAT32_MAX: float = 3.4028234663852886e38

# suffix -> (min, max), in order from narrowest to widest.
INT_RANGES: Dict[str, Tuple[int, int]] = {
    "i8": (INT8_MIN, INT8_MAX),
    "i16": (INT16_MIN, INT16_MAX),
    "i32": (INT32_MIN, INT32_MAX),
    "i64": (INT64_MIN, INT64_MAX),
    "u8": (0, UINT8_MAX),
    "u16": (0, UINT16_MAX),
    "u32": (0, UINT32_MAX),
    "u64": (0, UINT64_MAX),
}

# String bound suffix: "s" followed by a decimal length.
STRING_BOUND_RE = re.compile(r"^s(0|[1-9][0-9]*)$")

# Bounds picked by from_python() for native strings.
AUTO_STRING_BOUNDS = (64, 256, 1024)

# ── Comments ──────────────────────────────────────────────────
COMMENT_MARKERS = (":|", "//")

# ── Files ─────────────────────────────────────────────────────
# XZ stream header magic.  Read-side detection keys on this alone.
XZ_MAGIC = b"\xfd7zXZ\x00"
MAGIC_LEN = len(XZ_MAGIC)

EXT_IO_COMPRESSED = ".io.gbln.xz"
EXT_IO = ".io.gbln"
EXT_SOURCE = ".gbln"

DEFAULT_COMPRESSION_LEVEL = 6
DEFAULT_INDENT = 2
MIN_COMPRESSION_LEVEL = 0
MAX_COMPRESSION_LEVEL = 9

# ── Parser limits ─────────────────────────────────────────────
# Bounds recursion depth so hostile input fails cleanly instead of
# blowing the interpreter stack.
MAX_DEPTH: int = 256
