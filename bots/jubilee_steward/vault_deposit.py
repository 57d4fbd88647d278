#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Deposit an asset into the Jubilee vault that accepts it.

Run with:

```
python bots/jubilee_steward/vault_deposit.py 100 USDC base
```
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import cli_output
from input_validation import validate_amount, validate_asset, validate_chain
from logging_config import get_logger
from onchain import connect
from safe_math import to_units
from sequencer import ApprovalPolicy, TransferIntent, TxOutcome
from vault_config import StewardConfig, load_config
from vault_position import read_position, read_underlying

logger = get_logger(__name__)


def run_deposit(
    amount: str,
    asset: str,
    chain: Optional[str] = None,
    config: Optional[StewardConfig] = None,
    w3=None,
    account=None,
) -> TxOutcome:
    config = config or load_config()
    value = validate_amount(amount)
    chain = validate_chain(chain or config.default_chain, config)
    network = config.network(chain)
    accepted = [symbol for ref in network.vaults.values() for symbol in ref.accepts]
    asset = validate_asset(asset, accepted)
    ref = network.vault_for_asset(asset)
    amount_text = str(amount).strip()

    cli_output.banner("📥 Depositing to Jubilee Vault")
    seq = connect(network, config, w3=w3, account=account)
    cli_output.field("Vault", ref.name)
    cli_output.field("Amount", f"{amount_text} {asset}")
    cli_output.field("Agent", seq.address)

    underlying, decimals, symbol = read_underlying(seq, ref)
    if symbol.lower() != asset.lower():
        # the vault pulls its own underlying, whatever was asked for
        cli_output.warn(f"{ref.name} takes {symbol}; depositing {amount_text} {symbol} instead of {asset}")
        logger.warning("Requested %s but %s underlying is %s", asset, ref.name, symbol)

    units = to_units(value, decimals, symbol)
    vault = seq.vault(ref.vault)
    intent = TransferIntent(
        label="Deposit",
        token=underlying,
        symbol=symbol,
        decimals=decimals,
        amount_text=amount_text,
        units=units,
        spender=ref.vault,
        policy=ApprovalPolicy.EXACT,
    )
    outcome = seq.run_transfer(intent, lambda: vault.functions.deposit(units, seq.address))
    cli_output.display_tx_result(outcome, "Deposit")
    cli_output.field("Explorer", network.tx_url(outcome.tx_hash))

    position = seq.read_back(f"{ref.name} position", lambda: read_position(seq, ref))
    if position is not None:
        print(f"\n📊 Your {ref.name} shares: {position.shares_text}")
        cli_output.field("Underlying value", f"{position.assets_text} {position.symbol}", indent="   ")
    return outcome


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Deposit an asset into its Jubilee vault")
    parser.add_argument("amount", help="Amount of the asset, e.g. 100")
    parser.add_argument("asset", help="Asset symbol (USDC, USDT, cbBTC)")
    parser.add_argument("chain", nargs="?", help="Network name (default: DEFAULT_CHAIN)")
    args = parser.parse_args(argv)
    return cli_output.run_command(
        "deposit", "Deposit", lambda: run_deposit(args.amount, args.asset, args.chain)
    )


if __name__ == "__main__":
    sys.exit(main())
