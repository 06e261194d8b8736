"""Which chains may use which address encoding."""

from __future__ import annotations

from enum import Enum

HARDENED = 0x80000000
HDPATH_1_DEFAULT = HARDENED | 118


class AddressEncoding(Enum):
    BECH32_COSMOS = "bech32_cosmos"
    BECH32_ETH = "bech32_eth"
    UNSUPPORTED = "unsupported"


# Chains with a custom configuration: (coin type, hrp, encoding).
CHAIN_CONFIG: tuple[tuple[int, str, AddressEncoding], ...] = (
    (60, "inj", AddressEncoding.BECH32_ETH),
    (60, "evmos", AddressEncoding.BECH32_ETH),
    (60, "xpla", AddressEncoding.BECH32_ETH),
    (60, "dym", AddressEncoding.BECH32_ETH),
    (60, "zeta", AddressEncoding.BECH32_ETH),
    (60, "bera", AddressEncoding.BECH32_ETH),
    (60, "human", AddressEncoding.BECH32_ETH),
)


def check_chain_config(path: int, hrp) -> AddressEncoding:
    """Return the address encoding allowed for a coin-type path element and hrp."""
    if path == HDPATH_1_DEFAULT:
        return AddressEncoding.BECH32_COSMOS

    hrp_text = hrp.decode("latin-1") if isinstance(hrp, (bytes, bytearray)) else hrp
    for coin_type, chain_hrp, encoding in CHAIN_CONFIG:
        if path == (HARDENED | coin_type) and chain_hrp == hrp_text:
            return encoding
    return AddressEncoding.UNSUPPORTED