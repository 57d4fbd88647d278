#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Public status of the Jubilee vaults: TVL, base asset and target APY.

Read-only; no wallet is loaded.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence

from web3.exceptions import BadFunctionCallOutput, ContractLogicError

import cli_output
from input_validation import validate_chain
from onchain import connect, short_address
from safe_math import format_units
from sequencer import TxSequencer
from tx_errors import RpcError, StewardError
from vault_config import StewardConfig, VaultRef, load_config
from vault_position import read_underlying


@dataclass(frozen=True)
class VaultStatus:
    name: str
    vault: str
    underlying: str
    symbol: str
    decimals: int
    total_assets: int
    managed_balance: Optional[int]
    target_apy: str

    @property
    def active(self) -> bool:
        return self.total_assets > 0


def read_status(seq: TxSequencer, ref: VaultRef) -> VaultStatus:
    vault = seq.vault(ref.vault)
    total_assets = seq.rpc(f"{ref.name} totalAssets()", lambda: vault.functions.totalAssets().call())
    underlying, decimals, symbol = read_underlying(seq, ref)
    try:
        managed = seq.rpc(
            f"{ref.name} managedBalanceOf()",
            lambda: vault.functions.managedBalanceOf(underlying).call(),
        )
    except RpcError as exc:
        # older vault versions revert here
        if not isinstance(exc.__cause__, (ContractLogicError, BadFunctionCallOutput)):
            raise
        managed = None
    return VaultStatus(
        name=ref.name,
        vault=ref.vault,
        underlying=underlying,
        symbol=symbol,
        decimals=decimals,
        total_assets=total_assets,
        managed_balance=managed,
        target_apy=ref.target_apy,
    )


def _print_status(status: VaultStatus) -> None:
    cli_output.field("Address", status.vault)
    cli_output.field("Total Value Locked", f"{format_units(status.total_assets, status.decimals)} {status.symbol}")
    cli_output.field("Base Asset", f"{status.symbol} ({short_address(status.underlying)})")
    if status.managed_balance is not None:
        cli_output.field(
            "Managed Balance", f"{format_units(status.managed_balance, status.decimals)} {status.symbol}"
        )
    cli_output.field("Target APY", f"{status.target_apy} (estimated)")
    if status.active:
        cli_output.ok("Vault is active and operational")
    else:
        cli_output.warn("Vault has no deposits yet")


def run_status(
    chain: Optional[str] = None,
    config: Optional[StewardConfig] = None,
    w3=None,
) -> List[VaultStatus]:
    config = config or load_config()
    chain = validate_chain(chain or config.default_chain, config)
    network = config.network(chain)

    cli_output.banner(f"🏛️  Jubilee Protocol Status - {network.name.upper()}")
    seq = connect(network, config, w3=w3, wallet=False)

    statuses = []
    for ref in network.vaults.values():
        print(f"\n{ref.name} Vault")
        try:
            status = read_status(seq, ref)
        except StewardError as exc:
            cli_output.fail(f"  Error fetching {ref.name} data: {exc.message}")
            continue
        statuses.append(status)
        _print_status(status)

    print()
    cli_output.rule()
    print("Note: APY values are estimated targets, not real-time data")
    cli_output.ok("Status check complete\n")
    return statuses


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Show Jubilee vault TVL and targets")
    parser.add_argument("chain", nargs="?", help="Network name (default: DEFAULT_CHAIN)")
    args = parser.parse_args(argv)
    return cli_output.run_command("status", "Status check", lambda: run_status(args.chain))


if __name__ == "__main__":
    sys.exit(main())
