"""Parser error codes and the exception that carries them."""

from __future__ import annotations

from enum import IntEnum


class ParserError(IntEnum):
    """Error codes reported by the transaction parsers."""

    # Generic errors
    OK = 0
    NO_DATA = 1
    INIT_CONTEXT_EMPTY = 2
    DISPLAY_IDX_OUT_OF_RANGE = 3
    DISPLAY_PAGE_OUT_OF_RANGE = 4
    UNEXPECTED_ERROR = 5
    # Coin generic
    UNEXPECTED_TYPE = 6
    UNEXPECTED_METHOD = 7
    UNEXPECTED_BUFFER_END = 8
    UNEXPECTED_VALUE = 9
    UNEXPECTED_NUMBER_ITEMS = 10
    UNEXPECTED_VERSION = 11
    UNEXPECTED_CHARACTERS = 12
    UNEXPECTED_FIELD = 13
    DUPLICATED_FIELD = 14
    VALUE_OUT_OF_RANGE = 15
    INVALID_ADDRESS = 16
    UNEXPECTED_CHAIN = 17
    MISSING_FIELD = 18
    QUERY_NO_RESULTS = 19
    TRANSACTION_TOO_BIG = 20
    # Coin specific
    JSON_ZERO_TOKENS = 21
    JSON_TOO_MANY_TOKENS = 22
    JSON_INCOMPLETE_JSON = 23
    JSON_CONTAINS_WHITESPACE = 24
    JSON_IS_NOT_SORTED = 25
    JSON_MISSING_CHAIN_ID = 26
    JSON_MISSING_SEQUENCE = 27
    JSON_MISSING_FEE = 28
    JSON_MISSING_MSGS = 29
    JSON_MISSING_ACCOUNT_NUMBER = 30
    JSON_MISSING_MEMO = 31
    JSON_UNEXPECTED_ERROR = 32
    # CBOR
    CBOR_UNEXPECTED = 33
    CBOR_UNEXPECTED_EOF = 34
    CBOR_NOT_CANONICAL = 35
    # Context
    CONTEXT_MISMATCH = 36
    CONTEXT_UNEXPECTED_SIZE = 37
    CONTEXT_INVALID_CHARS = 38
    CONTEXT_UNKNOWN_PREFIX = 39


class ParserException(Exception):
    """Raised when parsing fails; ``error`` holds the :class:`ParserError`."""

    def __init__(self, error):
        self.error = ParserError(error)
        super().__init__(self.error.name.lower())