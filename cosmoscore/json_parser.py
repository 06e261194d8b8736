"""A token-level JSON parser and queries over its token list.

The tokenizer is permissive: bare words are accepted as primitives and
top-level values need not be wrapped in an object or array.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from itertools import islice
from typing import Iterator

from .errors import ParserError, ParserException

MAX_NUMBER_OF_TOKENS = 768
ROOT_TOKEN_INDEX = 0

_WHITESPACE = "\t\r\n "
_PRIMITIVE_END = ":\t\r\n ,]}"
_SIMPLE_ESCAPES = '"/\\bfrnt'
_HEX_DIGITS = "0123456789abcdefABCDEF"


class TokenType(Enum):
    UNDEFINED = 0
    OBJECT = 1
    ARRAY = 2
    STRING = 3
    PRIMITIVE = 4


@dataclass(slots=True)
class Token:
    """A span of the input; strings exclude their quotes."""

    type: TokenType = TokenType.UNDEFINED
    start: int = -1
    end: int = -1
    size: int = 0


_EMPTY_TOKEN = Token(TokenType.UNDEFINED, 0, 0, 0)


class _Tokenizer:
    def __init__(self, text: str, max_tokens: int):
        self.text = text
        self.length = len(text)
        self.max_tokens = max_tokens
        self.tokens: list[Token] = []
        self.pos = 0
        self.toksuper = -1

    def _alloc(self, start_pos: int) -> Token:
        if len(self.tokens) >= self.max_tokens:
            self.pos = start_pos
            raise ParserException(ParserError.JSON_TOO_MANY_TOKENS)
        token = Token()
        self.tokens.append(token)
        return token

    def _more(self) -> bool:
        return self.pos < self.length and self.text[self.pos] != "\0"

    def _last_open(self, below: int, containers_only: bool = False) -> int:
        for i in range(below, -1, -1):
            token = self.tokens[i]
            if containers_only and token.type not in (TokenType.ARRAY, TokenType.OBJECT):
                continue
            if token.start != -1 and token.end == -1:
                return i
        return -1

    def _bump_super(self) -> None:
        if self.toksuper != -1:
            self.tokens[self.toksuper].size += 1

    def _parse_primitive(self) -> None:
        start = self.pos
        while self._more():
            ch = self.text[self.pos]
            if ch in _PRIMITIVE_END:
                break
            if ord(ch) < 32 or ord(ch) >= 127:
                self.pos = start
                raise ParserException(ParserError.UNEXPECTED_CHARACTERS)
            self.pos += 1
        token = self._alloc(start)
        token.type = TokenType.PRIMITIVE
        token.start = start
        token.end = self.pos
        self.pos -= 1

    def _parse_string(self) -> None:
        start = self.pos
        self.pos += 1
        while self._more():
            ch = self.text[self.pos]
            if ch == '"':
                token = self._alloc(start)
                token.type = TokenType.STRING
                token.start = start + 1
                token.end = self.pos
                return
            if ch == "\\" and self.pos + 1 < self.length:
                self.pos += 1
                escaped = self.text[self.pos]
                if escaped == "u":
                    self.pos += 1
                    for _ in range(4):
                        if not self._more():
                            break
                        if self.text[self.pos] not in _HEX_DIGITS:
                            self.pos = start
                            raise ParserException(ParserError.UNEXPECTED_CHARACTERS)
                        self.pos += 1
                    self.pos -= 1
                elif escaped not in _SIMPLE_ESCAPES:
                    self.pos = start
                    raise ParserException(ParserError.UNEXPECTED_CHARACTERS)
            self.pos += 1
        self.pos = start
        raise ParserException(ParserError.JSON_INCOMPLETE_JSON)

    def _close(self, ch: str) -> None:
        kind = TokenType.OBJECT if ch == "}" else TokenType.ARRAY
        i = self._last_open(len(self.tokens) - 1)
        if i == -1 or self.tokens[i].type != kind:
            raise ParserException(ParserError.UNEXPECTED_CHARACTERS)
        self.tokens[i].end = self.pos + 1
        self.toksuper = self._last_open(i)

    def run(self) -> list[Token]:
        while self._more():
            ch = self.text[self.pos]
            if ch in "{[":
                token = self._alloc(self.pos)
                self._bump_super()
                token.type = TokenType.OBJECT if ch == "{" else TokenType.ARRAY
                token.start = self.pos
                self.toksuper = len(self.tokens) - 1
            elif ch in "}]":
                self._close(ch)
            elif ch == '"':
                self._parse_string()
                self._bump_super()
            elif ch in _WHITESPACE:
                pass
            elif ch == ":":
                self.toksuper = len(self.tokens) - 1
            elif ch == ",":
                if self.toksuper != -1 and self.tokens[self.toksuper].type not in (
                    TokenType.ARRAY,
                    TokenType.OBJECT,
                ):
                    found = self._last_open(len(self.tokens) - 1, containers_only=True)
                    if found != -1:
                        self.toksuper = found
            else:
                self._parse_primitive()
                self._bump_super()
            self.pos += 1

        if any(t.start != -1 and t.end == -1 for t in self.tokens):
            raise ParserException(ParserError.JSON_INCOMPLETE_JSON)
        return self.tokens


@dataclass
class ParsedJson:
    """The input text together with its token list."""

    buffer: str
    tokens: list[Token] = field(default_factory=list)

    @property
    def number_of_tokens(self) -> int:
        return len(self.tokens)

    def _at(self, index: int) -> Token:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return _EMPTY_TOKEN

    def _check_index(self, index: int) -> None:
        if index < 0 or index > len(self.tokens):
            raise ParserException(ParserError.NO_DATA)

    def token_text(self, index: int) -> str:
        """Return the text covered by the token at ``index``."""
        token = self.tokens[index]
        return self.buffer[token.start:token.end]

    def _array_elements(self, array_index: int) -> Iterator[int]:
        array_token = self._at(array_index)
        prev_end = array_token.start
        for idx, token in enumerate(self.tokens[array_index + 1:], start=array_index + 1):
            if token.start > array_token.end:
                return
            if token.start <= prev_end:
                continue
            prev_end = token.end
            yield idx

    def _object_keys(self, object_index: int) -> Iterator[int]:
        object_token = self._at(object_index)
        prev_end = object_token.start
        token_index = object_index + 1
        while token_index < len(self.tokens):
            key_token = self.tokens[token_index]
            token_index += 1
            value_token = self._at(token_index)
            if key_token.start > object_token.end:
                return
            if key_token.start <= prev_end:
                continue
            prev_end = value_token.end
            yield token_index - 1

    def array_element_count(self, array_index: int) -> int:
        """Number of direct elements of the array at ``array_index``."""
        self._check_index(array_index)
        return sum(1 for _ in self._array_elements(array_index))

    def array_nth_element(self, array_index: int, element_index: int) -> int:
        """Token index of the ``element_index``-th element of an array."""
        self._check_index(array_index)
        if element_index < 0:
            raise ParserException(ParserError.NO_DATA)
        found = next(islice(self._array_elements(array_index), element_index, None), None)
        if found is None:
            raise ParserException(ParserError.NO_DATA)
        return found

    def object_element_count(self, object_index: int) -> int:
        """Number of key/value pairs directly under the object."""
        self._check_index(object_index)
        return sum(1 for _ in self._object_keys(object_index))

    def object_nth_key(self, object_index: int, element_index: int) -> int:
        """Token index of the ``element_index``-th key of an object."""
        self._check_index(object_index)
        if element_index < 0:
            raise ParserException(ParserError.NO_DATA)
        found = next(islice(self._object_keys(object_index), element_index, None), None)
        if found is None:
            raise ParserException(ParserError.NO_DATA)
        return found

    def object_nth_value(self, object_index: int, element_index: int) -> int:
        """Token index of the ``element_index``-th value of an object."""
        self._check_index(object_index)
        return self.object_nth_key(object_index, element_index) + 1

    def object_value(self, object_index: int, key: str) -> int:
        """Token index of the value stored under ``key`` in an object."""
        self._check_index(object_index)
        for key_index in self._object_keys(object_index):
            if self.token_text(key_index) == key:
                return key_index + 1
        raise ParserException(ParserError.NO_DATA)


def parse_json(buffer, max_tokens: int = MAX_NUMBER_OF_TOKENS) -> ParsedJson:
    """Tokenize ``buffer`` (str or bytes) into a :class:`ParsedJson`."""
    text = buffer.decode("latin-1") if isinstance(buffer, (bytes, bytearray)) else buffer
    tokens = _Tokenizer(text, max_tokens).run()
    if not tokens:
        raise ParserException(ParserError.JSON_ZERO_TOKENS)
    if len(tokens) > max_tokens:
        raise ParserException(ParserError.JSON_TOO_MANY_TOKENS)
    return ParsedJson(text, tokens)