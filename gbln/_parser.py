"""GBLN recursive-descent parser.

Grammar:

    value  := object | array | string | number | bool | null
    object := '{' (pair (',' pair)*)? '}'
    pair   := key ':' value          key: string literal or bare identifier
    array  := '[' (value (',' value)*)? ']'

Type resolution happens while parsing, never afterwards.  An unsuffixed
integer is i64 (u64 if it only fits there) and an unsuffixed fractional or
exponent literal is f64.  A suffix selects that width and the value is
range-checked against it.

Every failure is fatal to the parse: the first error is raised with the
position of the token that triggered it and no partial tree escapes.
"""

from __future__ import annotations

import math
from typing import List, Optional, Union

from ._constants import (
    INT64_MAX,
    INT64_MIN,
    INT_RANGES,
    MAX_DEPTH,
    STRING_BOUND_RE,
    UINT64_MAX,
)
from ._errors import ErrorKind, GblnError, reports_diagnostics
from ._lexer import Comment, Lexer, Token, TokenType
from ._value import FLOAT_KINDS, INTEGER_KINDS, KIND_BY_SUFFIX, Value, ValueType

# Literals longer than this cannot fit any width; skip the int()
# conversion, which also sidesteps CPython's int-string digit limit.
_MAX_INT_DIGITS = 24

_VALID_HINTS = "i8 i16 i32 i64 u8 u16 u32 u64 f32 f64 s<N>"


def _smallest_fitting_width(n: int) -> Optional[str]:
    order = ("i8", "i16", "i32", "i64") if n < 0 else ("u8", "u16", "u32", "u64")
    for name in order:
        lo, hi = INT_RANGES[name]
        if lo <= n <= hi:
            return name
    return None


class Parser:
    """Single-use parser over one input text.

    ``max_string_len`` bounds every string literal in the document; a
    literal with its own ``s<N>`` suffix must satisfy both limits.
    """

    def __init__(self, text: Union[str, bytes],
                 max_string_len: Optional[int] = None) -> None:
        self._lexer = Lexer(text)
        self._max_string_len = max_string_len
        self._tok: Optional[Token] = None
        self._depth = 0

    @property
    def comments(self) -> List[Comment]:
        """Comments seen so far, in source order."""
        return self._lexer.comments

    def parse(self) -> Value:
        self._advance()
        root = self._parse_value()
        if self._tok.type is not TokenType.EOF:
            raise self._fail(
                ErrorKind.INVALID_SYNTAX,
                "unexpected {} after the root value".format(self._tok.describe()),
                suggestion="wrap multiple values in an array or object",
            )
        return root

    # ── Token helpers ─────────────────────────────────────────

    def _advance(self) -> Token:
        prev = self._tok
        self._tok = next(self._lexer)
        return prev

    def _fail(self, kind: ErrorKind, msg: str, tok: Optional[Token] = None,
              suggestion: Optional[str] = None) -> GblnError:
        tok = tok or self._tok
        return GblnError(kind, msg, tok.position, suggestion)

    def _relocate(self, err: GblnError, tok: Token) -> GblnError:
        """Re-raise a value-model error at a token's position."""
        return GblnError(err.kind, err.message, tok.position, err.suggestion)

    def _expect_eof_or_token(self, what: str, suggestion: Optional[str] = None) -> GblnError:
        if self._tok.type is TokenType.EOF:
            return self._fail(ErrorKind.UNEXPECTED_EOF,
                              "unexpected end of input, expected {}".format(what),
                              suggestion=suggestion)
        return self._fail(ErrorKind.UNEXPECTED_TOKEN,
                          "expected {}, found {}".format(what, self._tok.describe()),
                          suggestion=suggestion)

    # ── Productions ───────────────────────────────────────────

    def _parse_value(self) -> Value:
        tok = self._tok
        tt = tok.type

        if tt is TokenType.LBRACE:
            return self._parse_object()
        if tt is TokenType.LBRACKET:
            return self._parse_array()
        if tt is TokenType.STRING:
            self._advance()
            return self._string_value(tok)
        if tt is TokenType.NUMBER:
            self._advance()
            return self._number_value(tok)
        if tt is TokenType.TRUE or tt is TokenType.FALSE:
            self._advance()
            return Value.boolean(tt is TokenType.TRUE)
        if tt is TokenType.NULL:
            self._advance()
            return Value.null()
        if tt is TokenType.IDENT:
            raise self._fail(
                ErrorKind.UNEXPECTED_TOKEN,
                "bare identifier {!r} is not a value".format(tok.text),
                suggestion='quote it as a string: "{}"'.format(tok.text),
            )
        raise self._expect_eof_or_token("a value")

    def _enter(self, tok: Token) -> None:
        self._depth += 1
        if self._depth > MAX_DEPTH:
            raise self._fail(ErrorKind.INVALID_SYNTAX,
                             "nesting exceeds maximum depth of {}".format(MAX_DEPTH), tok)

    def _parse_object(self) -> Value:
        open_tok = self._advance()
        self._enter(open_tok)
        obj = Value.object()

        if self._tok.type is TokenType.RBRACE:
            self._advance()
            self._depth -= 1
            return obj

        while True:
            key_tok = self._tok
            key = self._parse_key()
            if obj.get(key) is not None:
                raise self._fail(
                    ErrorKind.DUPLICATE_KEY,
                    "duplicate key {!r}".format(key),
                    key_tok,
                    "rename or remove one of the {!r} fields".format(key),
                )
            if self._tok.type is not TokenType.COLON:
                raise self._expect_eof_or_token(
                    "':' after key {!r}".format(key),
                    suggestion="separate each key from its value with ':'",
                )
            self._advance()
            obj._adopt(self._parse_value(), key)

            if self._tok.type is TokenType.COMMA:
                comma = self._advance()
                if self._tok.type is TokenType.RBRACE:
                    raise self._fail(ErrorKind.INVALID_SYNTAX,
                                     "trailing comma in object", comma,
                                     suggestion="remove the ',' before '}'")
                continue
            if self._tok.type is TokenType.RBRACE:
                self._advance()
                break
            raise self._expect_eof_or_token(
                "',' or '}'",
                suggestion="close the object with '}'"
                if self._tok.type is TokenType.EOF else None,
            )

        self._depth -= 1
        return obj

    def _parse_key(self) -> str:
        tok = self._tok
        if tok.type is TokenType.STRING:
            if tok.suffix is not None:
                raise self._fail(ErrorKind.INVALID_SYNTAX,
                                 "type suffix {!r} is not allowed on an object key".format(tok.suffix),
                                 suggestion="remove the suffix from the key")
            self._advance()
            return tok.value
        if tok.type in (TokenType.IDENT, TokenType.TRUE, TokenType.FALSE, TokenType.NULL):
            self._advance()
            return tok.text
        raise self._expect_eof_or_token("an object key")

    def _parse_array(self) -> Value:
        open_tok = self._advance()
        self._enter(open_tok)
        arr = Value.array()

        if self._tok.type is TokenType.RBRACKET:
            self._advance()
            self._depth -= 1
            return arr

        while True:
            arr._adopt(self._parse_value())
            if self._tok.type is TokenType.COMMA:
                comma = self._advance()
                if self._tok.type is TokenType.RBRACKET:
                    raise self._fail(ErrorKind.INVALID_SYNTAX,
                                     "trailing comma in array", comma,
                                     suggestion="remove the ',' before ']'")
                continue
            if self._tok.type is TokenType.RBRACKET:
                self._advance()
                break
            raise self._expect_eof_or_token(
                "',' or ']'",
                suggestion="close the array with ']'"
                if self._tok.type is TokenType.EOF else None,
            )

        self._depth -= 1
        return arr

    # ── Literal resolution ────────────────────────────────────

    def _string_value(self, tok: Token) -> Value:
        s = tok.value
        bound: Optional[int] = None

        if tok.suffix is not None:
            m = STRING_BOUND_RE.match(tok.suffix)
            if m is not None:
                bound = int(m.group(1))
            elif tok.suffix in KIND_BY_SUFFIX:
                raise self._fail(ErrorKind.TYPE_MISMATCH,
                                 "numeric suffix {!r} on a string literal".format(tok.suffix),
                                 tok, "use s<N> to bound a string")
            else:
                raise self._fail(ErrorKind.INVALID_TYPE_HINT,
                                 "unknown type hint {!r}".format(tok.suffix),
                                 tok, "valid hints: " + _VALID_HINTS)

        ctx = self._max_string_len
        if ctx is not None and len(s) > ctx:
            raise self._fail(ErrorKind.STRING_TOO_LONG,
                             "string of length {} exceeds limit of {}".format(len(s), ctx),
                             tok, "shorten the string")
        try:
            return Value.string(s, bound)
        except GblnError as e:
            raise self._relocate(e, tok) from None

    def _number_value(self, tok: Token) -> Value:
        literal = tok.value
        fractional = any(c in literal for c in ".eE")
        suffix = tok.suffix

        if suffix is None:
            kind = ValueType.F64 if fractional else None
        elif suffix in KIND_BY_SUFFIX:
            kind = KIND_BY_SUFFIX[suffix]
            if kind in INTEGER_KINDS and fractional:
                raise self._fail(
                    ErrorKind.TYPE_MISMATCH,
                    "integer suffix {!r} on non-integer literal {!r}".format(suffix, literal),
                    tok, "use f32 or f64, or drop the fractional part",
                )
        elif STRING_BOUND_RE.match(suffix):
            raise self._fail(ErrorKind.TYPE_MISMATCH,
                             "string suffix {!r} on a number".format(suffix),
                             tok, 'quote the value to make it a string')
        else:
            raise self._fail(ErrorKind.INVALID_TYPE_HINT,
                             "unknown type hint {!r}".format(suffix),
                             tok, "valid hints: " + _VALID_HINTS)

        if kind in FLOAT_KINDS:
            x = float(literal)
            if not math.isfinite(x):
                raise self._fail(ErrorKind.INT_OUT_OF_RANGE,
                                 "number {} out of range for {}".format(literal, kind.suffix), tok)
            try:
                return Value.number(kind, x)
            except GblnError as e:
                raise self._relocate(e, tok) from None

        n = self._int_literal(tok)
        if kind is None:
            if INT64_MIN <= n <= INT64_MAX:
                return Value(ValueType.I64, n)
            if 0 < n <= UINT64_MAX:
                return Value(ValueType.U64, n)
            raise self._fail(ErrorKind.INT_OUT_OF_RANGE,
                             "integer {} out of range for i64 and u64".format(literal), tok)

        lo, hi = INT_RANGES[kind.suffix]
        if n < lo or n > hi:
            fit = _smallest_fitting_width(n)
            if fit is None:
                hint = None
            elif n < 0 and kind.suffix.startswith("u"):
                hint = "unsigned widths cannot hold negative values; did you mean {}?".format(fit)
            else:
                hint = "did you mean a wider integer width such as {}?".format(fit)
            raise self._fail(
                ErrorKind.INT_OUT_OF_RANGE,
                "integer {} out of range for {} ({} to {})".format(literal, kind.suffix, lo, hi),
                tok, hint,
            )
        return Value(kind, n)

    def _int_literal(self, tok: Token) -> int:
        literal = tok.value
        digits = literal.lstrip("+-").lstrip("0")
        if len(digits) > _MAX_INT_DIGITS:
            raise self._fail(ErrorKind.INT_OUT_OF_RANGE,
                             "integer literal with {} digits is out of range".format(len(digits)),
                             tok)
        return int(literal)


@reports_diagnostics
def parse(text: Union[str, bytes], max_string_len: Optional[int] = None) -> Value:
    """Parse GBLN text into a Value tree.

    Raises GblnError on the first problem; nothing partial is returned.
    """
    if text is None:
        raise GblnError(ErrorKind.NULL_ARGUMENT, "input text is None")
    return Parser(text, max_string_len=max_string_len).parse()
