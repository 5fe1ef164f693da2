"""
UPLC Text Parser (Layer 1: Source Text → Term).

Converts UPLC concrete syntax into Term trees and reads the declared
program version.

Grammar:
    program ::= (program VERSION term)
    term    ::= name
              | (lam name term)
              | [term term ...]
              | (delay term) | (force term)
              | (builtin name)
              | (con type value)
              | (error)
              | (constr N term ...)
              | (case term term ...)
    type    ::= integer | bytestring | string | unit | bool | data
              | (list type) | (pair type type)

Syntax Notes:
    - ``[f a b]`` is left-nested application: ``[[f a] b]``
    - ``-- ...`` comments run to the end of the line
    - Names are resolved to de Bruijn indices while parsing
    - The header's version token is read verbatim here and validated by
      ``detect_version_from_source``
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import TextParseError, VersionUnreadableError
from .model import DEFAULT_VERSION, Version
from .plutus_data import (
    DataBytes,
    DataConstr,
    DataInteger,
    DataList,
    DataMap,
    PlutusData,
)
from .terms import (
    BOOL,
    BUILTIN_TAGS,
    BYTESTRING,
    CONSTR_INDEX_LIMIT,
    DATA,
    INTEGER,
    STRING,
    UNIT,
    Apply,
    Builtin,
    Case,
    Const,
    Constr,
    ConstType,
    Delay,
    Error,
    Force,
    Lambda,
    Term,
    TypeTag,
    Var,
    list_of,
    pair_of,
)


PROGRAM_HEADER = "(program"

_HEADER_VERSION_RE = re.compile(r"^(\d+\.\d+\.\d+)(?![.\d])")

_TOKEN_RE = re.compile(
    r"""
    (?P<comment>--[^\n]*)
  | (?P<space>\s+)
  | (?P<punct>[()\[\],])
  | (?P<string>"(?:[^"\\]|\\.)*")
  | (?P<bytes>\#[0-9a-fA-F]*)
  | (?P<atom>[^\s()\[\],"\#]+)
  | (?P<bad>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_']*$")
_NATURAL_RE = re.compile(r"^\d+$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_SURROGATE_RE = re.compile(r"[\ud800-\udfff]")

_SIMPLE_TYPES = {
    "integer": INTEGER,
    "bytestring": BYTESTRING,
    "string": STRING,
    "unit": UNIT,
    "bool": BOOL,
    "data": DATA,
}

_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


@dataclass
class Token:
    """A lexical token with its 1-based source position."""
    kind: str
    text: str
    line: int
    column: int


def tokenize(source: str) -> List[Token]:
    """Split UPLC source into tokens, dropping whitespace and comments."""
    tokens = []
    line, line_start = 1, 0
    for match in _TOKEN_RE.finditer(source):
        kind = match.lastgroup
        text = match.group()
        column = match.start() - line_start + 1
        if kind == "bad":
            raise TextParseError(f"Unexpected character {text!r}", line, column)
        if kind == "string" and "\n" in text:
            raise TextParseError("String literals cannot span lines", line, column)
        if kind not in ("comment", "space"):
            tokens.append(Token(kind, text, line, column))
        newlines = text.count("\n")
        if newlines:
            line += newlines
            line_start = match.start() + text.rindex("\n") + 1
    return tokens


def _unescape(body: str, token: Token) -> str:
    out = []
    pos = 0
    while pos < len(body):
        char = body[pos]
        if char != "\\":
            out.append(char)
            pos += 1
            continue
        code = body[pos + 1]
        if code in _ESCAPES:
            out.append(_ESCAPES[code])
            pos += 2
        elif code == "x" and re.match(r"[0-9a-fA-F]{2}", body[pos + 2:pos + 4]):
            out.append(chr(int(body[pos + 2:pos + 4], 16)))
            pos += 4
        elif code == "u" and re.match(r"[0-9a-fA-F]{4}", body[pos + 2:pos + 6]):
            code_point = int(body[pos + 2:pos + 6], 16)
            if 0xD800 <= code_point <= 0xDFFF:
                raise TextParseError(
                    f"Invalid escape '\\u{body[pos + 2:pos + 6]}': surrogate code points are not allowed",
                    token.line,
                    token.column,
                )
            out.append(chr(code_point))
            pos += 6
        else:
            raise TextParseError(f"Unknown escape sequence '\\{code}'", token.line, token.column)
    return "".join(out)


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    # -- token helpers ------------------------------------------------------

    def _peek(self, offset: int = 0) -> Optional[Token]:
        index = self.pos + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            last = self.tokens[-1] if self.tokens else None
            if last is None:
                raise TextParseError("Unexpected end of input", 1, 1)
            raise TextParseError("Unexpected end of input", last.line, last.column + len(last.text))
        self.pos += 1
        return token

    def _expect(self, text: str) -> Token:
        token = self._next()
        if token.text != text:
            raise self._error(f"Expected '{text}' but found '{token.text}'", token)
        return token

    def _at(self, text: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.text == text

    @staticmethod
    def _error(message: str, token: Token) -> TextParseError:
        return TextParseError(message, token.line, token.column)

    def _atom(self, what: str) -> Token:
        token = self._next()
        if token.kind != "atom":
            raise self._error(f"Expected {what} but found '{token.text}'", token)
        return token

    # -- entry point --------------------------------------------------------

    def parse_source(self) -> Term:
        if self._at("(") and self._at("program", 1):
            self.pos += 2
            self._atom("a program version")
            term = self.parse_term([])
            self._expect(")")
        else:
            term = self.parse_term([])
        trailing = self._peek()
        if trailing is not None:
            raise self._error(f"Unexpected input after the term: '{trailing.text}'", trailing)
        return term

    # -- terms --------------------------------------------------------------

    def parse_term(self, scope: List[str]) -> Term:
        token = self._next()

        if token.kind == "atom":
            return self._variable(token, scope)

        if token.text == "[":
            parts = []
            while not self._at("]"):
                parts.append(self.parse_term(scope))
            closing = self._next()
            if len(parts) < 2:
                raise self._error("An application needs a function and at least one argument", closing)
            term = parts[0]
            for argument in parts[1:]:
                term = Apply(term, argument)
            return term

        if token.text != "(":
            raise self._error(f"Unexpected token '{token.text}'", token)

        keyword = self._atom("a term keyword")
        word = keyword.text

        if word == "lam":
            name = self._atom("a variable name")
            if not _NAME_RE.match(name.text):
                raise self._error(f"Invalid variable name '{name.text}'", name)
            body = self.parse_term(scope + [name.text])
            term = Lambda(body)
        elif word == "delay":
            term = Delay(self.parse_term(scope))
        elif word == "force":
            term = Force(self.parse_term(scope))
        elif word == "builtin":
            name = self._atom("a builtin name")
            if name.text not in BUILTIN_TAGS:
                raise self._error(f"Unknown builtin function '{name.text}'", name)
            term = Builtin(name.text)
        elif word == "con":
            const_type = self.parse_type()
            term = Const(const_type, self.parse_value(const_type))
        elif word == "error":
            term = Error()
        elif word == "constr":
            index = self._atom("a constructor index")
            if not _NATURAL_RE.match(index.text) or int(index.text) >= CONSTR_INDEX_LIMIT:
                raise self._error(f"Invalid constructor index '{index.text}'", index)
            fields = []
            while not self._at(")"):
                fields.append(self.parse_term(scope))
            term = Constr(int(index.text), tuple(fields))
        elif word == "case":
            scrutinee = self.parse_term(scope)
            branches = []
            while not self._at(")"):
                branches.append(self.parse_term(scope))
            term = Case(scrutinee, tuple(branches))
        elif word == "program":
            raise self._error("A program header is only allowed at the top level", keyword)
        else:
            raise self._error(f"Unknown term keyword '{word}'", keyword)

        self._expect(")")
        return term

    def _variable(self, token: Token, scope: List[str]) -> Var:
        if not _NAME_RE.match(token.text):
            raise self._error(f"Unexpected token '{token.text}'", token)
        for depth in range(len(scope) - 1, -1, -1):
            if scope[depth] == token.text:
                return Var(len(scope) - depth)
        raise self._error(f"Unbound variable '{token.text}'", token)

    # -- types and values ---------------------------------------------------

    def parse_type(self) -> ConstType:
        token = self._next()
        if token.kind == "atom" and token.text in _SIMPLE_TYPES:
            return _SIMPLE_TYPES[token.text]
        if token.text == "(":
            operator = self._atom("a type operator")
            if operator.text == "list":
                element = self.parse_type()
                self._expect(")")
                return list_of(element)
            if operator.text == "pair":
                first = self.parse_type()
                second = self.parse_type()
                self._expect(")")
                return pair_of(first, second)
            raise self._error(f"Unknown type operator '{operator.text}'", operator)
        raise self._error(f"Unknown constant type '{token.text}'", token)

    def parse_value(self, const_type: ConstType):
        tag = const_type.tag

        if tag is TypeTag.INTEGER:
            return self._integer()
        if tag is TypeTag.BYTESTRING:
            return self._bytes()
        if tag is TypeTag.STRING:
            token = self._next()
            if token.kind != "string":
                raise self._error(f"Expected a string literal but found '{token.text}'", token)
            value = _unescape(token.text[1:-1], token)
            if _SURROGATE_RE.search(value):
                raise self._error("String literals cannot contain surrogate code points", token)
            return value
        if tag is TypeTag.UNIT:
            self._expect("(")
            self._expect(")")
            return None
        if tag is TypeTag.BOOL:
            token = self._next()
            if token.text not in ("True", "False"):
                raise self._error(f"Expected True or False but found '{token.text}'", token)
            return token.text == "True"
        if tag is TypeTag.LIST:
            element = const_type.args[0]
            return tuple(self._sequence(lambda: self.parse_value(element)))
        if tag is TypeTag.PAIR:
            self._expect("(")
            first = self.parse_value(const_type.args[0])
            self._expect(",")
            second = self.parse_value(const_type.args[1])
            self._expect(")")
            return (first, second)
        return self.parse_data()

    def _integer(self) -> int:
        token = self._next()
        if token.kind != "atom" or not _INTEGER_RE.match(token.text):
            raise self._error(f"Expected an integer but found '{token.text}'", token)
        return int(token.text)

    def _bytes(self) -> bytes:
        token = self._next()
        if token.kind != "bytes":
            raise self._error(f"Expected a #-prefixed bytestring but found '{token.text}'", token)
        digits = token.text[1:]
        if len(digits) % 2:
            raise self._error("Bytestring literals need an even number of hex digits", token)
        return bytes.fromhex(digits)

    def _sequence(self, parse_item) -> list:
        """Parse ``[item, item, ...]``."""
        self._expect("[")
        items = []
        if self._at("]"):
            self._next()
            return items
        while True:
            items.append(parse_item())
            token = self._next()
            if token.text == "]":
                return items
            if token.text != ",":
                raise self._error(f"Expected ',' or ']' but found '{token.text}'", token)

    def parse_data(self) -> PlutusData:
        if self._at("("):
            self._next()
            data = self.parse_data()
            self._expect(")")
            return data

        head = self._atom("a data constructor")
        if head.text == "Constr":
            index = self._integer()
            if index < 0:
                raise self._error("Constr index must be non-negative", head)
            return DataConstr(index, tuple(self._sequence(self.parse_data)))
        if head.text == "Map":
            return DataMap(tuple(self._sequence(self._data_pair)))
        if head.text == "List":
            return DataList(tuple(self._sequence(self.parse_data)))
        if head.text == "I":
            return DataInteger(self._integer())
        if head.text == "B":
            return DataBytes(self._bytes())
        raise self._error(f"Unknown data constructor '{head.text}'", head)

    def _data_pair(self) -> Tuple[PlutusData, PlutusData]:
        self._expect("(")
        key = self.parse_data()
        self._expect(",")
        value = self.parse_data()
        self._expect(")")
        return (key, value)


def parse_uplc_text(source: str) -> Term:
    """
    Parse UPLC source (a bare term or a full program) into a Term.

    Args:
        source: UPLC concrete syntax

    Returns:
        The body Term; the version is read by detect_version_from_source

    Raises:
        TextParseError: If the source is not valid UPLC
    """
    tokens = tokenize(source)
    if not tokens:
        raise TextParseError("The input contains no UPLC term.")
    return _Parser(tokens).parse_source()


def parse_const_type(text: str) -> ConstType:
    """Parse a constant type such as ``(list (pair integer data))``."""
    tokens = tokenize(text)
    if not tokens:
        raise TextParseError("Expected a constant type.")
    parser = _Parser(tokens)
    const_type = parser.parse_type()
    if parser.pos != len(tokens):
        raise TextParseError(f"Unexpected input after the type: '{tokens[parser.pos].text}'")
    return const_type


def detect_version_from_source(source: str) -> Version:
    """
    Read the version triple from a ``(program M.m.p ...)`` header.

    Input without the header gets DEFAULT_VERSION. A header whose version is
    missing, malformed or has more than three segments is an error, never a
    silent fallback to the default.

    Raises:
        VersionUnreadableError: No ``M.m.p`` token follows the header
        VersionInvalidError: The token does not form a valid Version
    """
    trimmed = source.strip()
    if not trimmed.startswith(PROGRAM_HEADER):
        return DEFAULT_VERSION

    closing = trimmed.rfind(")")
    start = len(PROGRAM_HEADER)
    inner = trimmed[start:closing].strip() if closing >= start else trimmed[start:].strip()

    match = _HEADER_VERSION_RE.match(inner)
    if not match:
        raise VersionUnreadableError()
    return Version.from_string(match.group(1))


__all__ = [
    "Token",
    "tokenize",
    "parse_uplc_text",
    "parse_const_type",
    "detect_version_from_source",
    "PROGRAM_HEADER",
]
