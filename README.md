# cosmoscore

The core logic of a Cosmos transaction-signing device, as a plain Python library.

## Modules

- **`cosmoscore.errors`**: `ParserError`, an `IntEnum` of parser error codes, and
  `ParserException`, raised on parse failures with the code in its `error` attribute
  (the message is the code's name in lower case, e.g. `no_data`).
- **`cosmoscore.json_parser`**: `parse_json(buffer, max_tokens=768)` tokenizes a `str` or
  `bytes` input into a `ParsedJson` holding `Token` entries (`type`, `start`, `end`,
  `size`; string tokens exclude their quotes). The tokenizer is permissive: bare words
  are primitives and the top level need not be an object or array. `ParsedJson` offers
  `token_text`, `array_element_count`, `array_nth_element`, `object_element_count`,
  `object_nth_key`, `object_nth_value` and `object_value`, all working on token indices
  and raising `ParserException(ParserError.NO_DATA)` when nothing is found.
- **`cosmoscore.chain_config`**: `check_chain_config(path, hrp)` returns the
  `AddressEncoding` allowed for a coin-type path element and bech32 prefix: always
  `BECH32_COSMOS` for coin type 118', `BECH32_ETH` for coin type 60' with one of the
  prefixes `inj`, `evmos`, `xpla`, `dym`, `zeta`, `bera`, `human`, otherwise `UNSUPPORTED`.
- **`cosmoscore.crypto`**: `compress_pubkey`, `keccak256`, `bech32_encode_bytes`,
  `cosmos_address` (bech32 of RIPEMD160(SHA256(compressed key))), `eth_address` (bech32
  of the last 20 bytes of Keccak256 of the key without its prefix), `address_response`
  (compressed key followed by the ASCII address) and `hash_message` (SHA-256 or
  Keccak-256 depending on the encoding). Failures raise `CryptoError`.
- **`cosmoscore.screens`**: `decode_screens(blob)` decodes a CBOR textual sign-mode
  envelope into a list of `Screen` items (`title`, `content`, `indent`, `expert`);
  `parse_screen(fields)` builds one screen from an already decoded map.
- **`cosmoscore.tx`**: `TxBuffer`, a bounded buffer (16384 bytes by default) that
  collects transaction chunks; `append` is all-or-nothing and raises `OverflowError`
  when a chunk does not fit.
- **`cosmoscore.addr`**: `bip32_to_str` (e.g. `44'/118'/0'/0/0`), `page_string` for
  splitting text into display pages, and `AddressView`, the items of the address
  review: the address, plus the path in expert mode or for non-Cosmos encodings.
- **`cosmoscore.apdu`**: `CosmosApp`, which handles APDU commands (get version, get
  address, sign in chunks) and returns each reply as bytes ending in a status word;
  also `extract_hrp`, `extract_hd_path`, `status_word_for`, `StatusWord` and `ApduError`.

## Examples

Parse JSON and look up a value:

```python
from cosmoscore.json_parser import parse_json

parsed = parse_json('{"account_number":"0","chain_id":"test-chain-1"}')
index = parsed.object_value(0, "chain_id")
print(parsed.token_text(index))   # test-chain-1
```

Derive an address from a public key:

```python
from cosmoscore.crypto import compress_pubkey, cosmos_address

compressed = compress_pubkey(uncompressed_pubkey)   # 65-byte 0x04-prefixed key
print(cosmos_address(compressed, "cosmos"))
```

Check a chain configuration:

```python
from cosmoscore.chain_config import AddressEncoding, check_chain_config

assert check_chain_config(0x80000000 | 60, "evmos") is AddressEncoding.BECH32_ETH
```

Answer a version request:

```python
from cosmoscore.apdu import CosmosApp

app = CosmosApp(pubkey_provider=lambda path: bytes(65), version=(1, 2, 3), target_id=0x33000004)
reply = app.handle(bytes([0x55, 0x00, 0, 0, 0]))
# bytes([0, 1, 2, 3, 0, 0x33, 0x00, 0x00, 0x04, 0x90, 0x00])
```

`CosmosApp` takes the key material from outside: `pubkey_provider(path)` must return a
65-byte uncompressed public key and `signer(path, digest)` a signature. Its `confirm`
attribute (`confirm(kind, review)`, approving everything by default) stands for the
user's review, and `tx_parser` (`tx_parser(data, sign_type)`) decides whether a
transaction is accepted.

## What this package does not do

- It holds no seed and derives no keys; public keys and signatures come from the
  callables you pass to `CosmosApp`.
- It has no screen and no device transport; replies are returned as bytes and user
  approval is a callback.
- The default transaction check in `CosmosApp` only tokenizes JSON transactions or
  decodes textual screens. It does not validate transaction fields or turn JSON
  transactions into display items.
- There is no command-line tool.

## Tests

```
pip install -e ".[test]"
pytest
```