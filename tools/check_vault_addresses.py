#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Quick sanity checks for the configured Jubilee vault and token addresses."""

from __future__ import annotations

import sys
from typing import List, Optional, Sequence

from web3 import Web3

from abi_min import ERC20_ABI, ERC4626_ABI
from onchain import make_w3
from safe_math import format_units
from vault_config import NATIVE_TOKEN, NetworkConfig, VaultRef, load_config


def _erc20_info(w3: Web3, address: str) -> tuple[str, int]:
    contract = w3.eth.contract(address=Web3.to_checksum_address(address), abi=ERC20_ABI)
    symbol = contract.functions.symbol().call()
    decimals = contract.functions.decimals().call()
    return symbol, int(decimals)


def check_vault(w3: Web3, ref: VaultRef) -> List[str]:
    """Problems found for one vault; empty when everything reads back."""
    problems = []
    vault = w3.eth.contract(address=Web3.to_checksum_address(ref.vault), abi=ERC4626_ABI)
    asset = vault.functions.asset().call()
    symbol, decimals = _erc20_info(w3, asset)
    total = vault.functions.totalAssets().call()
    print(f"{ref.name:<8} {ref.vault} -> asset={asset} ({symbol}, {decimals} decimals), "
          f"totalAssets={format_units(total, decimals)}")

    if ref.accepts and symbol.lower() not in {s.lower() for s in ref.accepts}:
        problems.append(f"{ref.name}: asset() is {symbol}, configured to accept {', '.join(ref.accepts)}")
    if ref.token and ref.token.lower() not in (asset.lower(), ref.vault.lower()):
        problems.append(f"{ref.name}: configured token {ref.token} matches neither asset() nor the vault")
    return problems


def check_network(w3: Web3, network: NetworkConfig) -> List[str]:
    problems = []
    chain_id = w3.eth.chain_id
    if chain_id != network.chain_id:
        return [f"RPC reports chainId {chain_id}, expected {network.chain_id}"]

    print("=== ERC20 TOKENS ===")
    for symbol, address in network.assets.items():
        if address.lower() == NATIVE_TOKEN.lower():
            continue
        actual, decimals = _erc20_info(w3, address)
        print(f"{symbol:<8} {address} -> symbol={actual}, decimals={decimals}")
        if actual.lower() != symbol.lower():
            problems.append(f"{symbol}: contract reports symbol {actual}")

    print("\n=== VAULTS ===")
    for ref in network.vaults.values():
        try:
            problems.extend(check_vault(w3, ref))
        except Exception as exc:
            problems.append(f"{ref.name}: {exc}")
    return problems


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    config = load_config()
    chain = args[0] if args else config.default_chain
    try:
        network = config.network(chain)
    except KeyError:
        print(f"Unknown chain {chain!r}. Valid options: {', '.join(config.networks)}")
        return 1

    problems = check_network(make_w3(network), network)
    if problems:
        print("\n!! WARNING:")
        for problem in problems:
            print(f"   - {problem}")
        return 1
    print("\nValidation complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
