"""GBLN serialization and I/O configuration.

A Config is an immutable snapshot.  "Setters" return a new validated
snapshot, so a config handed to the serializer or file codec can never
change underneath it.

    Config.io()      MINI text + XZ, level 6, indent 2, comments stripped
    Config.source()  pretty text, no compression, indent 2, comments kept
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from ._constants import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_INDENT,
    MAX_COMPRESSION_LEVEL,
    MIN_COMPRESSION_LEVEL,
)
from ._errors import ErrorKind, GblnError, reports_diagnostics


def _require_bool(name: str, v: Any) -> None:
    if not isinstance(v, bool):
        raise GblnError(ErrorKind.TYPE_MISMATCH,
                        "{} must be a bool, got {}".format(name, type(v).__name__))


def _require_int(name: str, v: Any) -> None:
    if isinstance(v, bool) or not isinstance(v, int):
        raise GblnError(ErrorKind.TYPE_MISMATCH,
                        "{} must be an int, got {}".format(name, type(v).__name__))


@dataclass(frozen=True)
class Config:
    mini_mode: bool = True
    compress: bool = True
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    indent: int = DEFAULT_INDENT
    strip_comments: bool = True

    @reports_diagnostics
    def __post_init__(self) -> None:
        _require_bool("mini_mode", self.mini_mode)
        _require_bool("compress", self.compress)
        _require_bool("strip_comments", self.strip_comments)
        _require_int("compression_level", self.compression_level)
        _require_int("indent", self.indent)
        if not MIN_COMPRESSION_LEVEL <= self.compression_level <= MAX_COMPRESSION_LEVEL:
            raise GblnError(
                ErrorKind.INT_OUT_OF_RANGE,
                "compression_level {} outside {}-{}".format(
                    self.compression_level, MIN_COMPRESSION_LEVEL, MAX_COMPRESSION_LEVEL),
            )
        if self.indent < 0:
            raise GblnError(ErrorKind.INT_OUT_OF_RANGE,
                            "indent must be >= 0, got {}".format(self.indent))

    @classmethod
    def io(cls) -> "Config":
        """Production I/O preset: MINI + XZ."""
        return cls()

    @classmethod
    def source(cls) -> "Config":
        """Human-readable source preset."""
        return cls(mini_mode=False, compress=False, strip_comments=False)

    def replace(self, **changes: Any) -> "Config":
        return dataclasses.replace(self, **changes)

    def with_mini_mode(self, value: bool) -> "Config":
        return self.replace(mini_mode=value)

    def with_compress(self, value: bool) -> "Config":
        return self.replace(compress=value)

    def with_compression_level(self, value: int) -> "Config":
        return self.replace(compression_level=value)

    def with_indent(self, value: int) -> "Config":
        return self.replace(indent=value)

    def with_strip_comments(self, value: bool) -> "Config":
        return self.replace(strip_comments=value)


IO_CONFIG = Config.io()
SOURCE_CONFIG = Config.source()
