#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Withdraw underlying assets from a Jubilee vault.

Run with:

```
python bots/jubilee_steward/vault_withdraw.py 50 jUSDi base
```
"""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal
from typing import Optional, Sequence

import cli_output
from input_validation import validate_amount, validate_chain, validate_vault_name
from logging_config import get_logger
from onchain import connect
from safe_math import format_units, to_units
from sequencer import TxOutcome, TxSequencer
from vault_config import StewardConfig, VaultRef, load_config
from vault_position import VaultPosition, read_position, require_holdings

logger = get_logger(__name__)


def withdrawal_share(requested: int, holdings: int, basis: str = "before") -> Optional[Decimal]:
    """Size of a withdrawal relative to the position.

    ``before`` compares against the holdings before the withdrawal,
    ``after`` against what remains once it settles. Returns None when the
    ratio is unbounded (empty position, or nothing left afterwards).
    """
    if holdings <= 0:
        return None
    if basis == "after":
        remaining = holdings - requested
        if remaining <= 0:
            return None
        return Decimal(requested) / Decimal(remaining)
    return Decimal(requested) / Decimal(holdings)


def is_large_withdrawal(requested: int, holdings: int, threshold: Decimal, basis: str = "before") -> bool:
    if requested <= 0 or holdings <= 0:
        return False
    share = withdrawal_share(requested, holdings, basis)
    return share is None or share > threshold


def withdraw_from_vault(
    seq: TxSequencer,
    ref: VaultRef,
    value: Decimal,
    amount_text: str,
    config: StewardConfig,
    label: str = "Withdrawal",
):
    """Holdings check, large-withdrawal warning, then ``withdraw(units, me, me)``.

    Returns ``(outcome, position, units)`` where ``position`` is the state
    read before the withdrawal.
    """
    cli_output.step("Checking holdings...")
    position = read_position(seq, ref)
    units = to_units(value, position.decimals, position.symbol)
    require_holdings(position, units, amount_text)
    cli_output.field("Current holdings", f"{position.assets_text} {position.symbol}")

    if is_large_withdrawal(
        units, position.assets, config.large_withdrawal_threshold, config.large_withdrawal_basis
    ):
        share = withdrawal_share(units, position.assets, config.large_withdrawal_basis)
        pct = f"{share * 100:.1f}%" if share is not None else "all"
        basis = "current" if config.large_withdrawal_basis == "before" else "remaining"
        cli_output.warn(f"Large withdrawal: {pct} of your {basis} {ref.name} holdings")
        logger.warning(
            "Large withdrawal from %s: %s of %s units (basis %s)",
            ref.name, units, position.assets, config.large_withdrawal_basis,
        )

    vault = seq.vault(ref.vault)
    cli_output.step("Withdrawing from vault...")
    outcome = seq.execute(label, vault.functions.withdraw(units, seq.address, seq.address))
    return outcome, position, units


def _print_new_balances(seq: TxSequencer, ref: VaultRef, before: VaultPosition) -> None:
    after = seq.read_back(f"{ref.name} position", lambda: read_position(seq, ref))
    wallet = seq.read_back(f"{before.symbol} balance", lambda: seq.balance_of(before.underlying))
    if after is None and wallet is None:
        return
    print("\nNew balances:")
    if after is not None:
        cli_output.field("Vault", f"{after.assets_text} {after.symbol}", indent="  ")
    if wallet is not None:
        cli_output.field("Wallet", f"{format_units(wallet, before.decimals)} {before.symbol}", indent="  ")


def run_withdraw(
    amount: str,
    vault_name: str,
    chain: Optional[str] = None,
    config: Optional[StewardConfig] = None,
    w3=None,
    account=None,
) -> TxOutcome:
    config = config or load_config()
    value = validate_amount(amount)
    chain = validate_chain(chain or config.default_chain, config)
    network = config.network(chain)
    vault_name = validate_vault_name(vault_name, network.vaults)
    ref = network.vault(vault_name)
    amount_text = str(amount).strip()

    cli_output.banner("📤 Withdrawing from Jubilee Vault")
    seq = connect(network, config, w3=w3, account=account)
    cli_output.field("Vault", ref.name)
    cli_output.field("Amount", f"{amount_text} (underlying)")
    cli_output.field("Agent", seq.address)

    outcome, position, _ = withdraw_from_vault(seq, ref, value, amount_text, config)
    cli_output.display_tx_result(outcome, "Withdrawal")
    cli_output.field("Explorer", network.tx_url(outcome.tx_hash))
    _print_new_balances(seq, ref, position)
    return outcome


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Withdraw underlying assets from a Jubilee vault")
    parser.add_argument("amount", help="Amount of the underlying asset, e.g. 50")
    parser.add_argument("vault", help="Vault name (jUSDi, jBTCi)")
    parser.add_argument("chain", nargs="?", help="Network name (default: DEFAULT_CHAIN)")
    args = parser.parse_args(argv)
    return cli_output.run_command(
        "withdraw", "Withdrawal", lambda: run_withdraw(args.amount, args.vault, args.chain)
    )


if __name__ == "__main__":
    sys.exit(main())
