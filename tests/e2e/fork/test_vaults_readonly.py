import pytest
from web3 import Web3

from abi_min import ERC20_ABI, ERC4626_ABI
from vault_config import NATIVE_TOKEN

pytestmark = pytest.mark.fork


def test_asset_metadata(w3, network):
    for symbol, addr in network.assets.items():
        if addr == NATIVE_TOKEN:
            continue
        c = w3.eth.contract(Web3.to_checksum_address(addr), abi=ERC20_ABI)
        assert c.functions.decimals().call() > 0
        assert c.functions.symbol().call().lower() == symbol.lower()


def test_vaults_expose_erc4626_reads(w3, network):
    for ref in network.vaults.values():
        vault = w3.eth.contract(Web3.to_checksum_address(ref.vault), abi=ERC4626_ABI)
        asset = vault.functions.asset().call()
        assert Web3.is_address(asset)
        assert vault.functions.totalAssets().call() >= 0
        assert vault.functions.convertToAssets(10 ** 18).call() >= 0


def test_vault_assets_match_accepted_symbols(w3, network):
    for ref in network.vaults.values():
        vault = w3.eth.contract(Web3.to_checksum_address(ref.vault), abi=ERC4626_ABI)
        asset = w3.eth.contract(vault.functions.asset().call(), abi=ERC20_ABI)
        symbol = asset.functions.symbol().call()
        assert symbol.lower() in {s.lower() for s in ref.accepts}
