"""GBLN lexer.

Turns source text into a forward-only stream of tokens.  The lexer is a
single-pass iterator: it cannot be rewound, and the parser needs at most
one token of lookahead.

Token grammar:

    punctuation   { } [ ] : ,
    string        "..." with \\" \\\\ \\/ \\b \\f \\n \\r \\t \\uXXXX escapes
    number        [+-]? digits ('.' digits)? ([eE] [+-]? digits)?
    identifier    [A-Za-z_][A-Za-z0-9_-]*   (true / false / null are literals)
    comment       ':|' or '//' to end of line

Strings and numbers may carry a type suffix glued directly to the literal
(``5i8``, ``2.5f32``, ``"abc"s16``).  The lexer only captures the suffix
text; the parser decides whether it is valid.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from ._constants import COMMENT_MARKERS
from ._errors import ErrorKind, GblnError, Position


class TokenType(enum.Enum):
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    COLON = ":"
    COMMA = ","
    STRING = "string"
    NUMBER = "number"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    IDENT = "identifier"
    EOF = "end of input"


_PUNCT = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
}

_KEYWORDS = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
}

_WS = " \t\r\n\ufeff"

_NUMBER_RE = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_SUFFIX_RE = re.compile(r"[A-Za-z][A-Za-z0-9_]*")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_\-]*")
_STR_RUN_RE = re.compile('[^"\\\\\ud800-\udfff]+')
_HEX4_RE = re.compile(r"[0-9a-fA-F]{4}")

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str                 # raw lexeme, suffix included
    position: Position
    value: str = ""           # decoded string / number literal / identifier
    suffix: Optional[str] = None

    def describe(self) -> str:
        if self.type is TokenType.EOF:
            return "end of input"
        return repr(self.text)


@dataclass(frozen=True)
class Comment:
    text: str
    position: Position
    marker: str = ":|"


def decode_source(data: Union[bytes, bytearray]) -> str:
    """Decode UTF-8 input, reporting the first bad byte as UnexpectedChar."""
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as e:
        good = bytes(data[:e.start]).decode("utf-8")
        line = good.count("\n") + 1
        column = len(good) - (good.rfind("\n") + 1) + 1
        raise GblnError(
            ErrorKind.UNEXPECTED_CHAR,
            "invalid UTF-8 byte 0x{:02x}".format(data[e.start]),
            Position(line, column, e.start),
            "save the input as UTF-8",
        ) from None


class Lexer:
    """Lazy token iterator over GBLN text.

    Comments are dropped from the token stream; their text and position
    accumulate on ``comments`` as the lexer advances.
    """

    def __init__(self, text: Union[str, bytes]) -> None:
        if isinstance(text, (bytes, bytearray)):
            text = decode_source(text)
        self.text = text
        self.comments: List[Comment] = []
        self._i = 0
        self._line = 1
        self._col = 1
        self._off = 0
        self._done = False

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        if self._done:
            raise StopIteration
        tok = self._scan()
        if tok.type is TokenType.EOF:
            self._done = True
        return tok

    # ── Position tracking ─────────────────────────────────────

    def _pos(self) -> Position:
        return Position(self._line, self._col, self._off)

    def _advance_to(self, j: int) -> None:
        text, i = self.text, self._i
        seg = text[i:j]
        newlines = seg.count("\n")
        if newlines:
            self._line += newlines
            self._col = j - text.rfind("\n", i, j)
        else:
            self._col += j - i
        self._off += len(seg.encode("utf-8", "surrogatepass"))
        self._i = j

    def _error(self, kind: ErrorKind, msg: str, pos: Optional[Position] = None,
               suggestion: Optional[str] = None) -> GblnError:
        return GblnError(kind, msg, pos or self._pos(), suggestion)

    # ── Scanning ──────────────────────────────────────────────

    def _scan(self) -> Token:
        text = self.text
        n = len(text)

        while True:
            i = self._i
            while i < n and text[i] in _WS:
                i += 1
            self._advance_to(i)
            if i >= n:
                return Token(TokenType.EOF, "", self._pos())
            marker = next((m for m in COMMENT_MARKERS if text.startswith(m, i)), None)
            if marker is None:
                break
            self._skip_comment(marker)

        ch = text[i]
        start = self._pos()

        tt = _PUNCT.get(ch)
        if tt is not None:
            self._advance_to(i + 1)
            return Token(tt, ch, start)

        if ch == '"':
            return self._scan_string(start)

        if (ch.isascii() and ch.isdigit()) or ch in "+-":
            return self._scan_number(start)

        m = _IDENT_RE.match(text, i)
        if m:
            word = m.group(0)
            self._advance_to(m.end())
            return Token(_KEYWORDS.get(word, TokenType.IDENT), word, start, word)

        suggestion = None
        if ch == "'":
            suggestion = 'use double quotes (") for strings'
        elif ch == "/":
            suggestion = "line comments start with ':|' or '//'"
        raise self._error(ErrorKind.UNEXPECTED_CHAR,
                          "unexpected character {!r}".format(ch), start, suggestion)

    def _skip_comment(self, marker: str) -> None:
        start = self._pos()
        i = self._i
        end = self.text.find("\n", i)
        if end < 0:
            end = len(self.text)
        body = self.text[i + len(marker):end].strip()
        self.comments.append(Comment(body, start, marker))
        self._advance_to(end)

    def _scan_suffix(self, j: int) -> Optional[str]:
        m = _SUFFIX_RE.match(self.text, j)
        return m.group(0) if m else None

    def _scan_number(self, start: Position) -> Token:
        text, i = self.text, self._i
        m = _NUMBER_RE.match(text, i)
        if m is None:
            raise self._error(
                ErrorKind.INVALID_SYNTAX,
                "sign {!r} must be followed by digits".format(text[i]),
                start,
            )
        j = m.end()
        if text.startswith(".", j):
            raise self._error(
                ErrorKind.INVALID_SYNTAX,
                "malformed number literal {!r}".format(text[i:j + 1]),
                start,
                "a decimal point must be followed by digits",
            )
        literal = m.group(0)
        suffix = self._scan_suffix(j)
        end = j + len(suffix) if suffix else j
        self._advance_to(end)
        return Token(TokenType.NUMBER, text[i:end], start, literal, suffix)

    def _scan_string(self, start: Position) -> Token:
        text = self.text
        n = len(text)
        i = self._i + 1
        parts: List[str] = []

        while True:
            if i >= n:
                raise self._error(
                    ErrorKind.UNTERMINATED_STRING,
                    "unterminated string literal",
                    start,
                    'close the string with a matching `"`',
                )
            ch = text[i]
            if ch == '"':
                i += 1
                break
            if ch != "\\":
                m = _STR_RUN_RE.match(text, i)
                if m is None:
                    # Only a surrogate stops a run short of '"' or '\'.
                    self._advance_to(i)
                    raise self._error(
                        ErrorKind.UNEXPECTED_CHAR,
                        "unpaired surrogate U+{:04X} in string".format(ord(ch)),
                        suggestion="strings must be valid Unicode scalar values",
                    )
                parts.append(m.group(0))
                i = m.end()
                continue

            # Escape sequence.
            if i + 1 >= n:
                raise self._error(
                    ErrorKind.UNTERMINATED_STRING,
                    "unterminated string literal",
                    start,
                    'close the string with a matching `"`',
                )
            esc = text[i + 1]
            if esc in _ESCAPES:
                parts.append(_ESCAPES[esc])
                i += 2
                continue
            if esc == "u":
                cp, i = self._scan_unicode_escape(i)
                parts.append(chr(cp))
                continue
            self._advance_to(i)
            raise self._error(
                ErrorKind.INVALID_SYNTAX,
                "invalid escape sequence '\\{}'".format(esc),
                suggestion="escape a literal backslash as '\\\\'",
            )

        suffix = self._scan_suffix(i)
        end = i + len(suffix) if suffix else i
        raw = text[self._i:end]
        self._advance_to(end)
        return Token(TokenType.STRING, raw, start, "".join(parts), suffix)

    def _scan_unicode_escape(self, i: int):
        """Decode ``\\uXXXX`` (and a following low surrogate) starting at i."""
        text = self.text
        m = _HEX4_RE.match(text, i + 2)
        if m is None:
            self._advance_to(i)
            raise self._error(ErrorKind.INVALID_SYNTAX,
                              "\\u escape needs exactly four hex digits")
        cp = int(m.group(0), 16)
        j = m.end()
        if 0xD800 <= cp <= 0xDBFF:
            low = _HEX4_RE.match(text, j + 2) if text.startswith("\\u", j) else None
            if low is not None:
                lo = int(low.group(0), 16)
                if 0xDC00 <= lo <= 0xDFFF:
                    cp = 0x10000 + ((cp - 0xD800) << 10) + (lo - 0xDC00)
                    return cp, low.end()
            self._advance_to(i)
            raise self._error(ErrorKind.INVALID_SYNTAX,
                              "unpaired surrogate \\u{:04x}".format(cp))
        if 0xDC00 <= cp <= 0xDFFF:
            self._advance_to(i)
            raise self._error(ErrorKind.INVALID_SYNTAX,
                              "unpaired surrogate \\u{:04x}".format(cp))
        return cp, j


def tokenize(text: Union[str, bytes]) -> Iterator[Token]:
    """Iterate over the tokens of ``text``, ending with an EOF token."""
    return Lexer(text)
