"""APDU command dispatch: version, address and signing requests."""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Callable, Optional, Sequence

from .addr import AddressView
from .chain_config import HDPATH_1_DEFAULT, HARDENED, AddressEncoding, check_chain_config
from .crypto import MAX_BECH32_HRP_LEN, PK_LEN_SECP256K1, CryptoError, address_response, hash_message
from .errors import ParserError, ParserException
from .json_parser import parse_json
from .screens import decode_screens
from .tx import TxBuffer

CLA = 0x55

INS_GET_VERSION = 0x00
INS_SIGN_SECP256K1 = 0x02
INS_GET_ADDR_SECP256K1 = 0x04

OFFSET_CLA = 0
OFFSET_INS = 1
OFFSET_P1 = 2
OFFSET_P2 = 3
OFFSET_DATA = 5
APDU_MIN_LENGTH = 5

P1_INIT = 0
P1_ADD = 1
P1_LAST = 2

TX_JSON = 0
TX_TEXTUAL = 1

HDPATH_LEN_DEFAULT = 5
HDPATH_0_DEFAULT = HARDENED | 44
HDPATH_ETH_1_DEFAULT = HARDENED | 60
HDPATH_3_DEFAULT = 0
MAX_UNHARDENED_PATH_VALUE = 100
_HDPATH_BYTES = 4 * HDPATH_LEN_DEFAULT


class StatusWord(IntEnum):
    """Status words closing every reply."""

    OK = 0x9000
    BUSY = 0x9001
    EXECUTION_ERROR = 0x6400
    WRONG_LENGTH = 0x6700
    EMPTY_BUFFER = 0x6982
    OUTPUT_BUFFER_TOO_SMALL = 0x6983
    DATA_INVALID = 0x6984
    CONDITIONS_NOT_SATISFIED = 0x6985
    COMMAND_NOT_ALLOWED = 0x6986
    TX_NOT_INITIALIZED = 0x6987
    BAD_KEY_HANDLE = 0x6A80
    INVALIDP1P2 = 0x6B00
    INS_NOT_SUPPORTED = 0x6D00
    CLA_NOT_SUPPORTED = 0x6E00
    UNKNOWN = 0x6F00
    SIGN_VERIFY_ERROR = 0x6F01


class ApduError(Exception):
    """A command failed; ``code`` is the status, ``data`` precedes it in the reply."""

    def __init__(self, code, data: bytes = b""):
        self.code = int(code)
        self.data = bytes(data)
        super().__init__(f"APDU error 0x{self.code:04X}")


def status_word_for(code: int) -> int:
    """Map an error code to the status word sent back to the host."""
    if code & 0xF000 in (0x6000, StatusWord.OK):
        return code & 0xFFFF
    return 0x6800 | (code & 0x7FF)


def _sw_bytes(code: int) -> bytes:
    return status_word_for(code).to_bytes(2, "big")


def extract_hrp(data: bytes) -> str:
    """Read a length-prefixed bech32 human readable part."""
    data = bytes(data)
    if not data:
        raise ApduError(StatusWord.DATA_INVALID)
    hrp_len = data[0]
    if hrp_len == 0 or hrp_len > MAX_BECH32_HRP_LEN or len(data) < 1 + hrp_len:
        raise ApduError(StatusWord.DATA_INVALID)
    return data[1:1 + hrp_len].decode("latin-1")


def extract_hd_path(data: bytes, expert: bool) -> list[int]:
    """Read and check a five-element little-endian BIP32 path."""
    data = bytes(data)
    if not data:
        raise ApduError(StatusWord.DATA_INVALID)
    if len(data) < _HDPATH_BYTES:
        raise ApduError(StatusWord.WRONG_LENGTH)
    path = list(struct.unpack_from(f"<{HDPATH_LEN_DEFAULT}I", data))

    if (
        path[0] != HDPATH_0_DEFAULT
        or path[1] not in (HDPATH_1_DEFAULT, HDPATH_ETH_1_DEFAULT)
        or path[3] != HDPATH_3_DEFAULT
    ):
        raise ApduError(StatusWord.DATA_INVALID)

    if not expert and any((element & 0x7FFFFFFF) > MAX_UNHARDENED_PATH_VALUE for element in path[2:]):
        raise ApduError(StatusWord.CONDITIONS_NOT_SATISFIED)
    return path


def _default_tx_parser(data: bytes, sign_type: int) -> None:
    if sign_type == TX_JSON:
        parse_json(data)
    elif sign_type == TX_TEXTUAL:
        decode_screens(data)
    else:
        raise ParserException(ParserError.VALUE_OUT_OF_RANGE)


def _approve_all(kind: str, review) -> bool:
    return True


class CosmosApp:
    """Handles APDU commands and produces the raw reply for each.

    ``pubkey_provider(path)`` returns a 65-byte uncompressed public key;
    ``signer(path, digest)`` returns a DER signature and raises on failure.
    ``confirm(kind, review)`` stands for the user's review: ``kind`` is
    ``"address"`` (with an :class:`AddressView`) or ``"transaction"`` (with
    the transaction bytes); returning False rejects the request.
    ``tx_parser(data, sign_type)`` raises :class:`ParserException` to refuse
    a transaction.
    """

    def __init__(self, pubkey_provider, signer=None, version: Sequence[int] = (0, 0, 0),
                 target_id: int = 0, expert: bool = False):
        self.pubkey_provider: Callable[[list[int]], bytes] = pubkey_provider
        self.signer: Optional[Callable[[list[int], bytes], bytes]] = signer
        self.version = tuple(version)
        self.target_id = target_id
        self.expert = expert
        self.confirm: Callable[[str, object], bool] = _approve_all
        self.tx_parser: Callable[[bytes, int], None] = _default_tx_parser
        self.tx = TxBuffer()
        self.hd_path: list[int] = []
        self.hrp = ""
        self.encoding = AddressEncoding.BECH32_COSMOS

    def handle(self, command) -> bytes:
        """Process one command and return its reply, status word included."""
        command = bytes(command)
        try:
            if not command or command[OFFSET_CLA] != CLA:
                raise ApduError(StatusWord.CLA_NOT_SUPPORTED)
            if len(command) < APDU_MIN_LENGTH:
                raise ApduError(StatusWord.WRONG_LENGTH)

            ins = command[OFFSET_INS]
            if ins == INS_GET_VERSION:
                return self._get_version()
            if ins == INS_GET_ADDR_SECP256K1:
                return self._get_address(command)
            if ins == INS_SIGN_SECP256K1:
                return self._sign(command)
            raise ApduError(StatusWord.INS_NOT_SUPPORTED)
        except ApduError as exc:
            return exc.data + _sw_bytes(exc.code)

    def _get_version(self) -> bytes:
        major, minor, patch = self.version
        reply = bytes([0, major & 0xFF, minor & 0xFF, patch & 0xFF, 0])
        reply += (self.target_id & 0xFFFFFFFF).to_bytes(4, "big")
        return reply + _sw_bytes(StatusWord.OK)

    def _fill_address(self) -> bytes:
        try:
            pubkey = self.pubkey_provider(list(self.hd_path))
            reply = address_response(pubkey, self.hrp, self.encoding)
        except (CryptoError, ValueError) as exc:
            raise ApduError(StatusWord.EXECUTION_ERROR) from exc
        if not reply:
            raise ApduError(StatusWord.EXECUTION_ERROR)
        return reply

    def _get_address(self, command: bytes) -> bytes:
        data = command[OFFSET_DATA:]
        hrp = extract_hrp(data)
        self.hrp = hrp
        self.hd_path = extract_hd_path(data[1 + len(hrp):], self.expert)

        self.encoding = check_chain_config(self.hd_path[1], hrp)
        if self.encoding is AddressEncoding.UNSUPPORTED:
            raise ApduError(StatusWord.COMMAND_NOT_ALLOWED)

        reply = self._fill_address()

        if command[OFFSET_P1]:
            view = AddressView(
                address=reply[PK_LEN_SECP256K1:].decode("ascii"),
                hd_path=list(self.hd_path),
                encoding=self.encoding,
                expert=self.expert,
            )
            if not self.confirm("address", view):
                return _sw_bytes(StatusWord.COMMAND_NOT_ALLOWED)
        return reply + _sw_bytes(StatusWord.OK)

    def _extract_path_and_hrp(self, data: bytes) -> None:
        self.hd_path = extract_hd_path(data, self.expert)
        self.encoding = AddressEncoding.BECH32_COSMOS

        if len(data) > _HDPATH_BYTES:
            self.hrp = extract_hrp(data[_HDPATH_BYTES:])
            self.encoding = check_chain_config(self.hd_path[1], self.hrp)
            if self.encoding is AddressEncoding.UNSUPPORTED:
                raise ApduError(StatusWord.COMMAND_NOT_ALLOWED)
        elif self.hd_path[1] == HDPATH_ETH_1_DEFAULT:
            raise ApduError(StatusWord.COMMAND_NOT_ALLOWED)

    def _process_chunk(self, command: bytes) -> bool:
        if len(command) < OFFSET_DATA:
            raise ApduError(StatusWord.WRONG_LENGTH)
        payload_type = command[OFFSET_P1]
        data = command[OFFSET_DATA:]

        if payload_type == P1_INIT:
            self.tx.reset()
            self._extract_path_and_hrp(data)
            return False
        if payload_type in (P1_ADD, P1_LAST):
            try:
                self.tx.append(data)
            except OverflowError as exc:
                raise ApduError(StatusWord.OUTPUT_BUFFER_TOO_SMALL) from exc
            return payload_type == P1_LAST
        raise ApduError(StatusWord.INVALIDP1P2)

    def _sign(self, command: bytes) -> bytes:
        if not self._process_chunk(command):
            return _sw_bytes(StatusWord.OK)

        sign_type = command[OFFSET_P2]
        if self.hd_path and self.hd_path[1] == HDPATH_ETH_1_DEFAULT and not self.expert:
            raise ApduError(StatusWord.DATA_INVALID)

        blob = self.tx.data
        try:
            self.tx_parser(blob, sign_type)
        except ParserException as exc:
            raise ApduError(StatusWord.DATA_INVALID, str(exc).encode("ascii")) from exc

        if not self.confirm("transaction", blob):
            return _sw_bytes(StatusWord.COMMAND_NOT_ALLOWED)
        return self._sign_blob(blob)

    def _sign_blob(self, blob: bytes) -> bytes:
        if self.signer is None:
            return _sw_bytes(StatusWord.SIGN_VERIFY_ERROR)
        try:
            digest = hash_message(blob, self.encoding)
            signature = bytes(self.signer(list(self.hd_path), digest))
        except (CryptoError, ValueError):
            return _sw_bytes(StatusWord.SIGN_VERIFY_ERROR)
        if not signature:
            return _sw_bytes(StatusWord.SIGN_VERIFY_ERROR)
        return signature + _sw_bytes(StatusWord.OK)