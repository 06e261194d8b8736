import pytest

from cosmoscore.chain_config import AddressEncoding, check_chain_config

COSMOS_PATH = 0x80000000 | 118
ETH_PATH = 0x80000000 | 60


@pytest.mark.parametrize("hrp", ["cosmos", "inj", "anything"])
def test_cosmos_path_always_allowed(hrp):
    assert check_chain_config(COSMOS_PATH, hrp) is AddressEncoding.BECH32_COSMOS


@pytest.mark.parametrize("hrp", ["inj", "evmos", "xpla", "dym", "zeta", "bera", "human"])
def test_eth_chains(hrp):
    assert check_chain_config(ETH_PATH, hrp) is AddressEncoding.BECH32_ETH


def test_bytes_hrp():
    assert check_chain_config(ETH_PATH, b"evmos") is AddressEncoding.BECH32_ETH


@pytest.mark.parametrize("hrp", ["cosmos", "in", "injx", "", "EVMOS"])
def test_eth_path_unknown_hrp(hrp):
    assert check_chain_config(ETH_PATH, hrp) is AddressEncoding.UNSUPPORTED


def test_unhardened_eth_path_unsupported():
    assert check_chain_config(60, "inj") is AddressEncoding.UNSUPPORTED


def test_unhardened_cosmos_path_unsupported():
    assert check_chain_config(118, "cosmos") is AddressEncoding.UNSUPPORTED