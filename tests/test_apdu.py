import struct

import pytest

from cosmoscore.addr import AddressView
from cosmoscore.apdu import (
    CLA,
    INS_GET_ADDR_SECP256K1,
    INS_GET_VERSION,
    INS_SIGN_SECP256K1,
    P1_ADD,
    P1_INIT,
    P1_LAST,
    ApduError,
    CosmosApp,
    StatusWord,
    extract_hd_path,
    extract_hrp,
    status_word_for,
)
from cosmoscore.chain_config import AddressEncoding
from cosmoscore.crypto import compress_pubkey, cosmos_address, hash_message
from cosmoscore.tx import TxBuffer

H = 0x80000000
PUBKEY = bytes.fromhex(
    "047d8d3c470d1cfd8525d9537efdb92319a13a9bc9e336b6621fa5a664d2591b60"
    "fcd4f7882b0ff07d5ea0697050c7d23428daa5beaf6268cbac1369c278c6d8ea"
)
COSMOS_PATH = [H | 44, H | 118, H | 0, 0, 0]
ETH_PATH = [H | 44, H | 60, H | 0, 0, 0]
FAKE_SIG = b"\x30\x44signature"


def apdu(ins, p1=0, p2=0, data=b""):
    return bytes([CLA, ins, p1, p2, len(data)]) + data


def path_bytes(path):
    return struct.pack("<5I", *path)


def hrp_bytes(hrp):
    return bytes([len(hrp)]) + hrp.encode()


def sw(code):
    return int(code).to_bytes(2, "big")


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, path, digest):
        self.calls.append((path, digest))
        return FAKE_SIG


def make_app(expert=False):
    return CosmosApp(lambda path: PUBKEY, Recorder(), (1, 2, 3), 0x33000004, expert)


def test_status_word_passthrough():
    assert status_word_for(StatusWord.OK) == StatusWord.OK
    assert status_word_for(StatusWord.DATA_INVALID) == StatusWord.DATA_INVALID


def test_status_word_other_codes_are_folded():
    result = status_word_for(0x1234)
    assert result & 0xF800 == 0x6800
    assert result & 0x7FF == 0x1234 & 0x7FF


def test_get_version():
    app = CosmosApp(lambda p: PUBKEY, None, (2, 34, 12), 0x33100004)
    reply = app.handle(apdu(INS_GET_VERSION))
    assert reply == bytes([0, 2, 34, 12, 0, 0x33, 0x10, 0x00, 0x04]) + sw(StatusWord.OK)


def test_wrong_cla():
    reply = make_app().handle(bytes([0x00, INS_GET_VERSION, 0, 0, 0]))
    assert reply == sw(StatusWord.CLA_NOT_SUPPORTED)


def test_too_short():
    assert make_app().handle(bytes([CLA, 0])) == sw(StatusWord.WRONG_LENGTH)


def test_unknown_instruction():
    assert make_app().handle(apdu(0x7F)) == sw(StatusWord.INS_NOT_SUPPORTED)


def test_extract_hrp_round_trip():
    assert extract_hrp(hrp_bytes("cosmos") + b"rest") == "cosmos"


@pytest.mark.parametrize("data", [b"", b"\x00", bytes([84]) + b"a" * 84, b"\x05ab"])
def test_extract_hrp_invalid(data):
    with pytest.raises(ApduError) as info:
        extract_hrp(data)
    assert info.value.code == StatusWord.DATA_INVALID


def test_extract_hd_path_round_trip():
    assert extract_hd_path(path_bytes(COSMOS_PATH), False) == COSMOS_PATH
    assert extract_hd_path(path_bytes(ETH_PATH), False) == ETH_PATH


def test_extract_hd_path_short():
    with pytest.raises(ApduError) as info:
        extract_hd_path(path_bytes(COSMOS_PATH)[:10], False)
    assert info.value.code == StatusWord.WRONG_LENGTH


def test_extract_hd_path_empty():
    with pytest.raises(ApduError) as info:
        extract_hd_path(b"", False)
    assert info.value.code == StatusWord.DATA_INVALID


def test_extract_hd_path_bad_purpose():
    with pytest.raises(ApduError) as info:
        extract_hd_path(path_bytes([H | 45, H | 118, H, 0, 0]), False)
    assert info.value.code == StatusWord.DATA_INVALID


def test_extract_hd_path_limit_outside_expert_mode():
    path = [H | 44, H | 118, H | 0, 0, 101]
    with pytest.raises(ApduError) as info:
        extract_hd_path(path_bytes(path), False)
    assert info.value.code == StatusWord.CONDITIONS_NOT_SATISFIED
    assert extract_hd_path(path_bytes(path), True) == path


def test_get_address_cosmos():
    app = make_app()
    reply = app.handle(apdu(INS_GET_ADDR_SECP256K1, data=hrp_bytes("cosmos") + path_bytes(COSMOS_PATH)))
    compressed = compress_pubkey(PUBKEY)
    assert reply[-2:] == sw(StatusWord.OK)
    assert reply[:33] == compressed
    assert reply[33:-2].decode() == cosmos_address(compressed, "cosmos")
    assert app.encoding is AddressEncoding.BECH32_COSMOS


def test_get_address_evmos():
    app = make_app()
    reply = app.handle(apdu(INS_GET_ADDR_SECP256K1, data=hrp_bytes("evmos") + path_bytes(ETH_PATH)))
    assert reply[:33] == bytes.fromhex("027d8d3c470d1cfd8525d9537efdb92319a13a9bc9e336b6621fa5a664d2591b60")
    assert reply[33:-2] == b"evmos1dj7dw0xcazjzs3rx9u9quakh77d0myeamrkupf"
    assert app.encoding is AddressEncoding.BECH32_ETH


def test_get_address_unsupported_chain():
    reply = make_app().handle(apdu(INS_GET_ADDR_SECP256K1, data=hrp_bytes("cosmos") + path_bytes(ETH_PATH)))
    assert reply == sw(StatusWord.COMMAND_NOT_ALLOWED)


def test_get_address_confirmation_shows_view():
    app = make_app()
    seen = []
    app.confirm = lambda kind, review: seen.append((kind, review)) or True
    reply = app.handle(apdu(INS_GET_ADDR_SECP256K1, p1=1, data=hrp_bytes("evmos") + path_bytes(ETH_PATH)))
    assert reply.endswith(sw(StatusWord.OK))
    kind, view = seen[0]
    assert kind == "address"
    assert isinstance(view, AddressView) and view.num_items() == 2
    assert view.address == "evmos1dj7dw0xcazjzs3rx9u9quakh77d0myeamrkupf"


def test_get_address_rejected():
    app = make_app()
    app.confirm = lambda kind, review: False
    reply = app.handle(apdu(INS_GET_ADDR_SECP256K1, p1=1, data=hrp_bytes("cosmos") + path_bytes(COSMOS_PATH)))
    assert reply == sw(StatusWord.COMMAND_NOT_ALLOWED)


def test_get_address_provider_failure():
    app = CosmosApp(lambda path: b"\x04short", None)
    reply = app.handle(apdu(INS_GET_ADDR_SECP256K1, data=hrp_bytes("cosmos") + path_bytes(COSMOS_PATH)))
    assert reply == sw(StatusWord.EXECUTION_ERROR)


def test_sign_flow():
    app = make_app()
    blob = b'{"account_number":"0","chain_id":"test-chain-1"}'
    assert app.handle(apdu(INS_SIGN_SECP256K1, P1_INIT, data=path_bytes(COSMOS_PATH))) == sw(StatusWord.OK)
    assert app.handle(apdu(INS_SIGN_SECP256K1, P1_ADD, data=blob[:20])) == sw(StatusWord.OK)
    reply = app.handle(apdu(INS_SIGN_SECP256K1, P1_LAST, data=blob[20:]))
    assert reply == FAKE_SIG + sw(StatusWord.OK)
    assert app.signer.calls == [(COSMOS_PATH, hash_message(blob, AddressEncoding.BECH32_COSMOS))]


def test_sign_eth_requires_expert_mode():
    app = make_app()
    init = path_bytes(ETH_PATH) + hrp_bytes("evmos")
    assert app.handle(apdu(INS_SIGN_SECP256K1, P1_INIT, data=init)) == sw(StatusWord.OK)
    assert app.handle(apdu(INS_SIGN_SECP256K1, P1_LAST, data=b'{"a":"b"}')) == sw(StatusWord.DATA_INVALID)


def test_sign_eth_in_expert_mode_uses_keccak():
    app = make_app(expert=True)
    app.handle(apdu(INS_SIGN_SECP256K1, P1_INIT, data=path_bytes(ETH_PATH) + hrp_bytes("evmos")))
    reply = app.handle(apdu(INS_SIGN_SECP256K1, P1_LAST, data=b'{"a":"b"}'))
    assert reply == FAKE_SIG + sw(StatusWord.OK)
    assert app.signer.calls[0][1] == hash_message(b'{"a":"b"}', AddressEncoding.BECH32_ETH)


def test_sign_eth_path_without_hrp_not_allowed():
    reply = make_app().handle(apdu(INS_SIGN_SECP256K1, P1_INIT, data=path_bytes(ETH_PATH)))
    assert reply == sw(StatusWord.COMMAND_NOT_ALLOWED)


def test_sign_invalid_p1():
    reply = make_app().handle(apdu(INS_SIGN_SECP256K1, 7, data=b"x"))
    assert reply == sw(StatusWord.INVALIDP1P2)


def test_sign_buffer_overflow():
    app = make_app()
    app.handle(apdu(INS_SIGN_SECP256K1, P1_INIT, data=path_bytes(COSMOS_PATH)))
    app.tx = TxBuffer(4)
    reply = app.handle(apdu(INS_SIGN_SECP256K1, P1_ADD, data=b"too long"))
    assert reply == sw(StatusWord.OUTPUT_BUFFER_TOO_SMALL)
    assert len(app.tx) == 0


def test_sign_unknown_type_reports_message():
    app = make_app()
    app.handle(apdu(INS_SIGN_SECP256K1, P1_INIT, data=path_bytes(COSMOS_PATH)))
    reply = app.handle(apdu(INS_SIGN_SECP256K1, P1_LAST, p2=5, data=b'{"a":"b"}'))
    assert reply == b"value_out_of_range" + sw(StatusWord.DATA_INVALID)
    assert app.signer.calls == []


def test_sign_signer_failure():
    def failing(path, digest):
        raise ValueError("no key")

    app = CosmosApp(lambda p: PUBKEY, failing)
    app.handle(apdu(INS_SIGN_SECP256K1, P1_INIT, data=path_bytes(COSMOS_PATH)))
    reply = app.handle(apdu(INS_SIGN_SECP256K1, P1_LAST, data=b'{"a":"b"}'))
    assert reply == sw(StatusWord.SIGN_VERIFY_ERROR)


def test_sign_rejected_by_user():
    app = make_app()
    app.confirm = lambda kind, review: False
    app.handle(apdu(INS_SIGN_SECP256K1, P1_INIT, data=path_bytes(COSMOS_PATH)))
    reply = app.handle(apdu(INS_SIGN_SECP256K1, P1_LAST, data=b'{"a":"b"}'))
    assert reply == sw(StatusWord.COMMAND_NOT_ALLOWED)
    assert app.signer.calls == []