"""GBLN error kinds, diagnostics, and the exception class.

Every fallible operation signals failure by raising GblnError, which
carries a structured Diagnostic.  Hosts that need a "last error" channel
get a thread-local one: public entry points record their failure there
and clear it on success, so a stale diagnostic never outlives a
successful call and threads never see each other's failures.
"""

from __future__ import annotations

import enum
import functools
import inspect
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar


class ErrorKind(enum.Enum):
    """Flat error taxonomy.  ``code`` is the stable integer error code."""

    UNEXPECTED_CHAR = ("UnexpectedChar", 1)
    UNTERMINATED_STRING = ("UnterminatedString", 2)
    UNEXPECTED_TOKEN = ("UnexpectedToken", 3)
    UNEXPECTED_EOF = ("UnexpectedEof", 4)
    INVALID_SYNTAX = ("InvalidSyntax", 5)
    INT_OUT_OF_RANGE = ("IntOutOfRange", 6)
    STRING_TOO_LONG = ("StringTooLong", 7)
    TYPE_MISMATCH = ("TypeMismatch", 8)
    INVALID_TYPE_HINT = ("InvalidTypeHint", 9)
    DUPLICATE_KEY = ("DuplicateKey", 10)
    NULL_ARGUMENT = ("NullArgument", 11)
    IO_FAILURE = ("IoFailure", 12)

    def __init__(self, label: str, code: int) -> None:
        self.label = label
        self.code = code

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class Position:
    """Location in the original input.

    line and column are 1-based and count characters; offset is the
    0-based UTF-8 byte offset.
    """

    line: int = 1
    column: int = 1
    offset: int = 0

    def __str__(self) -> str:
        return "line {}, column {}".format(self.line, self.column)


@dataclass(frozen=True)
class Diagnostic:
    kind: ErrorKind
    message: str
    position: Optional[Position] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        if self.position is None:
            return "{}: {}".format(self.kind, self.message)
        return "{} at {}: {}".format(self.kind, self.position, self.message)


class GblnError(Exception):
    """Exception for every GBLN failure.

    ``rejected`` is set by composite insert/push when the child was not
    taken; ownership stays with the caller, who gets the child back here.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        position: Optional[Position] = None,
        suggestion: Optional[str] = None,
        rejected: Any = None,
    ) -> None:
        self.diagnostic = Diagnostic(kind, message, position, suggestion)
        super().__init__(str(self.diagnostic))
        self.rejected = rejected

    @property
    def kind(self) -> ErrorKind:
        return self.diagnostic.kind

    @property
    def code(self) -> int:
        return self.diagnostic.kind.code

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def position(self) -> Optional[Position]:
        return self.diagnostic.position

    @property
    def suggestion(self) -> Optional[str]:
        return self.diagnostic.suggestion


# ── Thread-local diagnostics channel ──────────────────────────

_channel = threading.local()


def _set_last(diag: Optional[Diagnostic]) -> None:
    _channel.diagnostic = diag


def last_diagnostic() -> Optional[Diagnostic]:
    """Peek at this thread's pending diagnostic, if any."""
    return getattr(_channel, "diagnostic", None)


def last_error_message() -> Optional[str]:
    diag = last_diagnostic()
    return diag.message if diag is not None else None


def last_error_suggestion() -> Optional[str]:
    diag = last_diagnostic()
    return diag.suggestion if diag is not None else None


def take_last_diagnostic() -> Optional[Diagnostic]:
    """Return this thread's pending diagnostic and clear the slot."""
    diag = last_diagnostic()
    _set_last(None)
    return diag


def clear_last_error() -> None:
    _set_last(None)


F = TypeVar("F", bound=Callable[..., Any])


def reports_diagnostics(fn: F) -> F:
    """Record failures of a public entry point on the thread-local channel.

    Coroutine functions are wrapped with a coroutine, so the diagnostic
    lands on the thread running the event loop rather than on whichever
    executor thread did the blocking work.
    """
    if inspect.iscoroutinefunction(fn):

        @functools.wraps(fn)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                result = await fn(*args, **kwargs)
            except GblnError as e:
                _set_last(e.diagnostic)
                raise
            _set_last(None)
            return result

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            result = fn(*args, **kwargs)
        except GblnError as e:
            _set_last(e.diagnostic)
            raise
        _set_last(None)
        return result

    return wrapper  # type: ignore[return-value]
