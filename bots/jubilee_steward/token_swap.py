#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Swap tokens through the 0x aggregator.

The quote's transaction is forwarded as-is; only its gas limit is scaled by
``SWAP_GAS_BUFFER``. When the quote reports an allowance issue, the quoted
spender is approved for twice the sell amount before the swap.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import cli_output
from input_validation import validate_amount, validate_asset, validate_chain
from logging_config import get_logger
from onchain import connect
from safe_math import format_units, to_units
from sequencer import ApprovalPolicy, TransferIntent, TxOutcome, is_native
from swap_quote import ZeroExQuoteClient
from tx_errors import ValidationError
from vault_config import SWAP_TOKENS, StewardConfig, load_config

logger = get_logger(__name__)


def run_swap(
    amount: str,
    from_token: str,
    to_token: str,
    chain: Optional[str] = None,
    config: Optional[StewardConfig] = None,
    w3=None,
    account=None,
    quote_client: Optional[ZeroExQuoteClient] = None,
) -> TxOutcome:
    config = config or load_config()
    value = validate_amount(amount)
    chain = validate_chain(chain or config.default_chain, config)
    network = config.network(chain)
    sell_symbol = validate_asset(from_token, SWAP_TOKENS)
    buy_symbol = validate_asset(to_token, SWAP_TOKENS)
    if sell_symbol == buy_symbol:
        raise ValidationError("Cannot swap a token for itself", field="asset", value=sell_symbol)

    sell_token = network.asset_address(sell_symbol)
    buy_token = network.asset_address(buy_symbol)
    for symbol, address in ((sell_symbol, sell_token), (buy_symbol, buy_token)):
        if address is None:
            raise ValidationError(f"{symbol} is not available on {network.name}", field="asset", value=symbol)
    amount_text = str(amount).strip()

    cli_output.banner("🔄 Token Swap via 0x")
    seq = connect(network, config, w3=w3, account=account)
    cli_output.field("From", f"{amount_text} {sell_symbol}")
    cli_output.field("To", buy_symbol)
    cli_output.field("Agent", seq.address)

    sell_decimals = seq.decimals(sell_token)
    buy_decimals = seq.decimals(buy_token)
    units = to_units(value, sell_decimals, sell_symbol)
    intent = TransferIntent(
        label="Swap",
        token=sell_token,
        symbol=sell_symbol,
        decimals=sell_decimals,
        amount_text=amount_text,
        units=units,
        policy=ApprovalPolicy.SWAP_BUFFER,
    )
    seq.check_balance(intent)

    cli_output.step("Getting swap quote from 0x...")
    client = quote_client or ZeroExQuoteClient(config.swap)
    quote = client.get_quote(network.chain_id, sell_token, buy_token, units, seq.address)
    cli_output.ok("Quote received")
    cli_output.field("Expected output", f"{format_units(quote.buy_amount, buy_decimals)} {buy_symbol}", indent="   ")
    cli_output.field("Estimated gas", quote.gas, indent="   ")
    if quote.price:
        cli_output.field("Price", quote.price, indent="   ")

    if quote.allowance_spender and not is_native(sell_token):
        seq.ensure_allowance(sell_token, quote.allowance_spender, units, intent.policy)

    cli_output.step("Executing swap...")
    tx = quote.transaction(config.swap.gas_buffer)
    outcome = seq.execute("Swap", tx, gas_limit=tx["gas"])
    cli_output.display_tx_result(outcome, "Swap")

    received = seq.read_back(f"{buy_symbol} balance", lambda: seq.balance_of(buy_token))
    if received is not None:
        cli_output.field(f"\nNew {buy_symbol} balance", format_units(received, buy_decimals))
    cli_output.field("View on BaseScan", network.tx_url(outcome.tx_hash))
    return outcome


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Swap tokens through the 0x aggregator")
    parser.add_argument("amount", help="Amount of the sell token, e.g. 0.01")
    parser.add_argument("from_token", help=f"Token to sell ({', '.join(SWAP_TOKENS)})")
    parser.add_argument("to_token", help=f"Token to buy ({', '.join(SWAP_TOKENS)})")
    parser.add_argument("chain", nargs="?", help="Network name (default: DEFAULT_CHAIN)")
    args = parser.parse_args(argv)
    return cli_output.run_command(
        "swap", "Swap", lambda: run_swap(args.amount, args.from_token, args.to_token, args.chain)
    )


if __name__ == "__main__":
    sys.exit(main())
