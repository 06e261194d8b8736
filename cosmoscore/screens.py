"""Decoding of textual sign-mode screens from their CBOR envelope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import cbor2

from .errors import ParserError, ParserException

TITLE_KEY_ID = 1
CONTENT_KEY_ID = 2
INDENT_KEY_ID = 3
EXPERT_KEY_ID = 4

OUTPUT_HANDLER_SIZE = 600
MAX_CONTENT_SIZE = 550
MAX_TITLE_SIZE = 40
PRINTABLE_TITLE_SIZE = 17
PRINTABLE_PAGINATED_TITLE_SIZE = 10
SCREEN_BREAK = ":"
SCREEN_INDENT = ">"
TITLE_TRUNCATE_REPLACE = "---"


@dataclass
class Screen:
    """One screen: optional title, content, indentation and expert flag."""

    title: Optional[str]
    content: str
    indent: int = 0
    expert: bool = False


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_key(key: Any) -> int:
    if not _is_integer(key):
        raise ParserException(ParserError.UNEXPECTED_TYPE)
    return key


def _read_text(value: Any) -> str:
    if not isinstance(value, str):
        raise ParserException(ParserError.CONTEXT_MISMATCH)
    if len(value.encode("utf-8")) > MAX_CONTENT_SIZE:
        raise ParserException(ParserError.UNEXPECTED_VALUE)
    return value


def parse_screen(fields) -> Screen:
    """Build a :class:`Screen` from a decoded screen map, in its key order."""
    items = list(fields.items())
    if not items:
        raise ParserException(ParserError.UNEXPECTED_BUFFER_END)

    first_key = _require_key(items[0][0])
    if first_key != TITLE_KEY_ID:
        if first_key != CONTENT_KEY_ID:
            raise ParserException(ParserError.UNEXPECTED_TYPE)
        title = None
        content = _read_text(items[0][1])
        consumed = 1
    else:
        title = _read_text(items[0][1])
        if len(items) < 2:
            raise ParserException(ParserError.UNEXPECTED_BUFFER_END)
        if _require_key(items[1][0]) != CONTENT_KEY_ID:
            raise ParserException(ParserError.UNEXPECTED_TYPE)
        content = _read_text(items[1][1])
        consumed = 2

    screen = Screen(title, content)
    optional_count = len(items) - 2 if len(items) > 2 else 0
    for key, value in items[consumed:consumed + optional_count]:
        key = _require_key(key)
        if key == INDENT_KEY_ID:
            if not _is_integer(value):
                raise ParserException(ParserError.UNEXPECTED_TYPE)
            if not 0 <= value <= 0xFF:
                raise ParserException(ParserError.UNEXPECTED_VALUE)
            screen.indent = value
        elif key == EXPERT_KEY_ID:
            if not isinstance(value, bool):
                raise ParserException(ParserError.UNEXPECTED_TYPE)
            screen.expert = value
        else:
            screen.indent = 0
            screen.expert = False
    return screen


def decode_screens(blob: bytes) -> list[Screen]:
    """Decode the CBOR envelope ``{key: [screen, ...]}`` into screens."""
    try:
        envelope = cbor2.loads(bytes(blob))
    except cbor2.CBORDecodeError as exc:
        if isinstance(exc, EOFError):
            raise ParserException(ParserError.CBOR_UNEXPECTED_EOF) from exc
        raise ParserException(ParserError.CBOR_UNEXPECTED) from exc

    if not isinstance(envelope, dict):
        raise ParserException(ParserError.UNEXPECTED_TYPE)
    if not envelope:
        raise ParserException(ParserError.UNEXPECTED_BUFFER_END)

    containers = next(iter(envelope.values()))
    if not isinstance(containers, list):
        raise ParserException(ParserError.CBOR_UNEXPECTED)

    screens = []
    for entry in containers:
        if not isinstance(entry, dict):
            raise ParserException(ParserError.CBOR_UNEXPECTED)
        screens.append(parse_screen(entry))
    return screens