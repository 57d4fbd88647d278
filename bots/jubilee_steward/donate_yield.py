#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Harvest jUSDi yield and send it to another agent or person.

Two transactions: a vault withdrawal to the signer, then an ERC-20
transfer of the same underlying amount to the recipient.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import cli_output
from input_validation import validate_address, validate_amount, validate_chain
from onchain import connect
from sequencer import TransferIntent, TxOutcome
from tx_errors import ValidationError
from vault_config import StewardConfig, load_config
from vault_withdraw import withdraw_from_vault

DONATION_VAULT = "jUSDi"


def run_donate(
    amount: str,
    recipient: str,
    chain: Optional[str] = None,
    config: Optional[StewardConfig] = None,
    w3=None,
    account=None,
) -> TxOutcome:
    config = config or load_config()
    value = validate_amount(amount)
    recipient = validate_address(recipient, "Recipient address")
    chain = validate_chain(chain or config.default_chain, config)
    network = config.network(chain)
    if DONATION_VAULT not in network.vaults:
        raise ValidationError(f"No {DONATION_VAULT} vault configured on {network.name}", field="chain", value=chain)
    ref = network.vault(DONATION_VAULT)
    amount_text = str(amount).strip()

    cli_output.banner("🎁 Donating Yield")
    seq = connect(network, config, w3=w3, account=account)
    cli_output.field("From", seq.address)
    cli_output.field("To", recipient)
    cli_output.field("Amount", f"{amount_text} {ref.name}")

    _, position, units = withdraw_from_vault(seq, ref, value, amount_text, config, label="Yield withdrawal")
    cli_output.ok("Withdrawal complete")

    token = seq.token(position.underlying)
    intent = TransferIntent(
        label="Donation",
        token=position.underlying,
        symbol=position.symbol,
        decimals=position.decimals,
        amount_text=amount_text,
        units=units,
    )
    outcome = seq.run_transfer(intent, lambda: token.functions.transfer(recipient, units))
    cli_output.display_tx_result(outcome, "Donation")
    cli_output.field("Explorer", network.tx_url(outcome.tx_hash))

    print("\n✨ Yield donated successfully!")
    print("Spent the harvest, kept the seed.\n")
    return outcome


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Withdraw jUSDi yield and send it to a recipient")
    parser.add_argument("amount", help="Amount of the underlying asset, e.g. 10")
    parser.add_argument("recipient", help="Recipient address (0x...)")
    parser.add_argument("chain", nargs="?", help="Network name (default: DEFAULT_CHAIN)")
    args = parser.parse_args(argv)
    return cli_output.run_command(
        "donate", "Donate yield", lambda: run_donate(args.amount, args.recipient, args.chain)
    )


if __name__ == "__main__":
    sys.exit(main())
