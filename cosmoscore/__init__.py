"""JSON and CBOR transaction parsing, address derivation and APDU handling for Cosmos signing."""

__version__ = "0.1.0"

__all__ = [
    "addr",
    "apdu",
    "chain_config",
    "crypto",
    "errors",
    "json_parser",
    "screens",
    "tx",
]