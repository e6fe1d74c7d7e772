"""gbln: typed data-interchange notation for Python.

Parse GBLN text into a strictly typed value tree and write it back out,
either as indented source text or as compact (optionally XZ-compressed)
IO text.

Quick start:
    >>> from gbln import parse, serialize_compact
    >>> v = parse('{"a":5i8,"list":[1,2,3],"name":"x"}')
    >>> v.get("a").as_i8()
    (5, True)
    >>> serialize_compact(v)
    '{"a":5i8,"list":[1,2,3],"name":"x"}'

Integers default to i64 and fractional literals to f64; any other width
is spelled with a suffix (``200u8``, ``2.5f32``) and range-checked at
parse time.  Strings may declare a length bound (``"Alice"s16``).
"""

from __future__ import annotations

from ._config import IO_CONFIG, SOURCE_CONFIG, Config
from ._constants import (
    EXT_IO,
    EXT_IO_COMPRESSED,
    EXT_SOURCE,
    XZ_MAGIC,
    __format_version__,
)
from ._convert import dumps, from_python, loads, to_python
from ._errors import (
    Diagnostic,
    ErrorKind,
    GblnError,
    Position,
    clear_last_error,
    last_diagnostic,
    last_error_message,
    last_error_suggestion,
    take_last_diagnostic,
)
from ._io import (
    dumps_io,
    io_extension,
    is_compressed,
    loads_io,
    parse_file,
    parse_file_async,
    read_io,
    read_io_async,
    write_io,
    write_io_async,
)
from ._lexer import Comment, Lexer, Token, TokenType, tokenize
from ._parser import Parser, parse
from ._serializer import serialize, serialize_compact, serialize_pretty
from ._value import (
    Value,
    ValueType,
    new_array,
    new_bool,
    new_f32,
    new_f64,
    new_i8,
    new_i16,
    new_i32,
    new_i64,
    new_null,
    new_object,
    new_str,
    new_u8,
    new_u16,
    new_u32,
    new_u64,
)

__version__ = "1.0.0"

__all__ = [
    # Parse / serialize
    "parse",
    "Parser",
    "tokenize",
    "Lexer",
    "Token",
    "TokenType",
    "Comment",
    "serialize",
    "serialize_compact",
    "serialize_pretty",
    # Value model
    "Value",
    "ValueType",
    "new_i8",
    "new_i16",
    "new_i32",
    "new_i64",
    "new_u8",
    "new_u16",
    "new_u32",
    "new_u64",
    "new_f32",
    "new_f64",
    "new_str",
    "new_bool",
    "new_null",
    "new_object",
    "new_array",
    # Native conversion
    "from_python",
    "to_python",
    "loads",
    "dumps",
    # Configuration
    "Config",
    "IO_CONFIG",
    "SOURCE_CONFIG",
    # Files
    "read_io",
    "write_io",
    "loads_io",
    "dumps_io",
    "parse_file",
    "read_io_async",
    "write_io_async",
    "parse_file_async",
    "io_extension",
    "is_compressed",
    "EXT_IO",
    "EXT_IO_COMPRESSED",
    "EXT_SOURCE",
    "XZ_MAGIC",
    # Errors
    "GblnError",
    "ErrorKind",
    "Diagnostic",
    "Position",
    "last_diagnostic",
    "last_error_message",
    "last_error_suggestion",
    "take_last_diagnostic",
    "clear_last_error",
    "__format_version__",
]
