#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Treasury balance across the configured Jubilee vaults."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

import cli_output
from input_validation import validate_chain
from onchain import connect
from safe_math import format_units
from tx_errors import StewardError
from vault_config import NATIVE_DECIMALS, NATIVE_TOKEN, STABLE_SYMBOLS, StewardConfig, load_config
from vault_position import VaultPosition, read_position


@dataclass
class BalanceReport:
    chain: str
    address: str
    gas_balance: int
    positions: List[VaultPosition] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def stable_value(self) -> Decimal:
        return sum(
            (p.assets_value for p in self.positions if p.symbol in STABLE_SYMBOLS),
            Decimal(0),
        )


def _print_position(position: VaultPosition) -> None:
    if position.shares == 0:
        print("  └─ No holdings")
        return
    print(f"  ├─ Shares: {position.shares_text} {position.ref.name}")
    if position.symbol in STABLE_SYMBOLS:
        print(f"  ├─ Underlying: {position.assets_text} {position.symbol}")
        print(f"  └─ USD Value: ${position.assets_value:,.2f}")
    else:
        print(f"  ├─ Underlying: {position.assets_text} {position.symbol}")
        print("  └─ USD Value: (Requires BTC price oracle)")


def run_balance(
    chain: Optional[str] = None,
    config: Optional[StewardConfig] = None,
    w3=None,
    account=None,
) -> BalanceReport:
    config = config or load_config()
    chain = validate_chain(chain or config.default_chain, config)
    network = config.network(chain)

    cli_output.banner(f"💰 Treasury Balance - {network.name.upper()}")
    seq = connect(network, config, w3=w3, account=account)
    cli_output.field("Agent Address", seq.address)

    gas_balance = seq.balance_of(NATIVE_TOKEN)
    cli_output.field("\nGas Balance", f"{format_units(gas_balance, NATIVE_DECIMALS)} ETH")

    report = BalanceReport(chain=network.name, address=seq.address, gas_balance=gas_balance)
    for ref in network.vaults.values():
        print(f"\n{ref.name} Holdings")
        try:
            position = read_position(seq, ref)
        except StewardError as exc:
            # one unreadable vault does not hide the others
            report.errors.append(f"{ref.name}: {exc.message}")
            cli_output.fail(f"  Error fetching {ref.name} balance: {exc.message}")
            continue
        report.positions.append(position)
        _print_position(position)

    print()
    cli_output.rule()
    cli_output.field("Total Treasury Value", f"~${report.stable_value:,.2f}")
    cli_output.rule()
    cli_output.ok("Balance check complete\n")
    return report


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Show the agent's Jubilee vault balances")
    parser.add_argument("chain", nargs="?", help="Network name (default: DEFAULT_CHAIN)")
    args = parser.parse_args(argv)
    return cli_output.run_command("balance", "Balance check", lambda: run_balance(args.chain))


if __name__ == "__main__":
    sys.exit(main())
