"""Public key handling, hashing and bech32 address encoding."""

from __future__ import annotations

import hashlib

from Crypto.Hash import RIPEMD160, keccak

from .chain_config import AddressEncoding

MAX_BECH32_HRP_LEN = 83
PK_LEN_SECP256K1 = 33
PK_LEN_SECP256K1_UNCOMPRESSED = 65

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)


class CryptoError(Exception):
    """Raised when a key, hash or address cannot be produced."""


def compress_pubkey(uncompressed: bytes) -> bytes:
    """Turn a 65-byte uncompressed secp256k1 key into its 33-byte compressed form."""
    uncompressed = bytes(uncompressed)
    if len(uncompressed) != PK_LEN_SECP256K1_UNCOMPRESSED:
        raise CryptoError("uncompressed public key must be 65 bytes")
    prefix = 0x03 if uncompressed[64] & 1 else 0x02
    return bytes([prefix]) + uncompressed[1:PK_LEN_SECP256K1]


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest of ``data``."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(bytes(data)).digest()


def _ripemd160(data: bytes) -> bytes:
    return RIPEMD160.new(bytes(data)).digest()


def _polymod(values) -> int:
    chk = 1
    for value in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ value
        for bit, gen in enumerate(_GENERATOR):
            if (top >> bit) & 1:
                chk ^= gen
    return chk


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _to_five_bits(data: bytes) -> list[int]:
    acc = 0
    bits = 0
    out = []
    for byte in data:
        acc = ((acc << 8) | byte) & 0xFFF
        bits += 8
        while bits >= 5:
            bits -= 5
            out.append((acc >> bits) & 31)
    if bits:
        out.append((acc << (5 - bits)) & 31)
    return out


def bech32_encode_bytes(hrp, data: bytes) -> str:
    """Bech32-encode ``data`` (8-bit bytes, padded to 5-bit groups) under ``hrp``."""
    hrp_text = hrp.decode("latin-1") if isinstance(hrp, (bytes, bytearray)) else hrp
    if not 1 <= len(hrp_text) <= MAX_BECH32_HRP_LEN:
        raise CryptoError("invalid hrp length")
    for ch in hrp_text:
        if not 33 <= ord(ch) <= 126 or "A" <= ch <= "Z":
            raise CryptoError("invalid hrp character")
    values = _to_five_bits(bytes(data))
    polymod = _polymod(_hrp_expand(hrp_text) + values + [0] * 6) ^ 1
    checksum = [(polymod >> (5 * (5 - i))) & 31 for i in range(6)]
    return hrp_text + "1" + "".join(_CHARSET[v] for v in values + checksum)


def cosmos_address(compressed_pubkey: bytes, hrp) -> str:
    """Bech32 address of RIPEMD160(SHA256(compressed public key))."""
    compressed_pubkey = bytes(compressed_pubkey)
    if len(compressed_pubkey) != PK_LEN_SECP256K1:
        raise CryptoError("compressed public key must be 33 bytes")
    return bech32_encode_bytes(hrp, _ripemd160(_sha256(compressed_pubkey)))


def eth_address(uncompressed_pubkey: bytes, hrp) -> str:
    """Bech32 address of the last 20 bytes of Keccak256(public key without prefix)."""
    uncompressed_pubkey = bytes(uncompressed_pubkey)
    if len(uncompressed_pubkey) != PK_LEN_SECP256K1_UNCOMPRESSED:
        raise CryptoError("uncompressed public key must be 65 bytes")
    return bech32_encode_bytes(hrp, keccak256(uncompressed_pubkey[1:])[12:])


def address_response(uncompressed_pubkey: bytes, hrp, encoding: AddressEncoding) -> bytes:
    """Compressed public key followed by the ASCII address for ``encoding``."""
    compressed = compress_pubkey(uncompressed_pubkey)
    if encoding is AddressEncoding.BECH32_COSMOS:
        address = cosmos_address(compressed, hrp)
    elif encoding is AddressEncoding.BECH32_ETH:
        address = eth_address(uncompressed_pubkey, hrp)
    else:
        raise CryptoError("encoding failed")
    return compressed + address.encode("ascii")


def hash_message(message: bytes, encoding: AddressEncoding) -> bytes:
    """Digest of a transaction to be signed: SHA-256 or Keccak-256 by encoding."""
    if encoding is AddressEncoding.BECH32_COSMOS:
        return _sha256(message)
    if encoding is AddressEncoding.BECH32_ETH:
        return keccak256(message)
    raise CryptoError("unknown encoding")