#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""End-to-end runs of the steward commands against the in-memory chain."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

import cli_output
from donate_yield import run_donate
from fake_chain import AGENT, CBBTC, JBTCI, JUSDI, RECIPIENT, SWAP_ROUTER, SWAP_SPENDER, USDC
from swap_quote import SwapQuote
from token_swap import run_swap
from treasury_balance import run_balance
from tx_errors import (
    InsufficientBalanceError,
    QuoteRejectedError,
    SimulationError,
    ValidationError,
)
from vault_config import NATIVE_TOKEN, load_config
from vault_deposit import main as deposit_main
from vault_deposit import run_deposit
from vault_status import run_status
from vault_withdraw import is_large_withdrawal, run_withdraw, withdrawal_share


# Deposit ----------------------------------------------------------------

def test_deposit_insufficient_balance_message(chain, account, config):
    chain.fund(USDC, AGENT, 50_000_000)

    with pytest.raises(InsufficientBalanceError) as excinfo:
        run_deposit("100", "USDC", "base", config=config, w3=chain, account=account)

    assert "Available: 50.0 USDC, Required: 100 USDC" in excinfo.value.message
    assert chain.sent == []


def test_deposit_approves_exact_amount_then_deposits(chain, account, config, capsys):
    chain.fund(USDC, AGENT, 250_000_000)

    outcome = run_deposit("100", "usdc", config=config, w3=chain, account=account)

    assert chain.sent_calls() == ["approve", "deposit"]
    assert chain.sent[0]["_call"][1][1] == 100_000_000
    assert chain.sent[1]["_call"][1] == (100_000_000, AGENT)
    assert outcome.label == "Deposit"
    out = capsys.readouterr().out
    assert "Deposit successful!" in out
    assert "Your jUSDi shares: 100.0" in out
    assert "basescan.org/tx/0x" in out


def test_deposit_with_existing_allowance_sends_one_transaction(chain, account, config):
    chain.fund(USDC, AGENT, 250_000_000)
    chain.tokens[USDC.lower()].allowances[(AGENT.lower(), JUSDI.lower())] = 10 ** 12

    run_deposit("100", "USDC", config=config, w3=chain, account=account)

    assert chain.sent_calls() == ["deposit"]


def test_deposit_cbbtc_any_case_routes_to_btc_vault(chain, account, config):
    chain.fund(CBBTC, AGENT, 10 ** 8)

    run_deposit("0.5", "CBBTC", config=config, w3=chain, account=account)

    assert chain.sent[-1]["to"].lower() == JBTCI.lower()
    assert chain.sent[-1]["_call"][1][0] == 50_000_000


def test_deposit_rejects_too_precise_amount_for_token(chain, account, config):
    chain.fund(USDC, AGENT, 250_000_000)

    with pytest.raises(ValidationError) as excinfo:
        run_deposit("1.0000001", "USDC", config=config, w3=chain, account=account)

    assert "max: 6" in excinfo.value.message
    assert chain.sent == []


@pytest.mark.parametrize("amount", ["0", "-5", "abc", "1.0000000000000000001", "1e16"])
def test_invalid_amounts_fail_before_wallet_or_network(amount, config):
    # no w3/account: reaching the network layer would load the missing wallet
    with pytest.raises(ValidationError):
        run_deposit(amount, "USDC", config=config)


def test_deposit_unknown_asset(config):
    with pytest.raises(ValidationError) as excinfo:
        run_deposit("1", "DAI", config=config)
    assert "USDC" in excinfo.value.message


def test_deposit_cli_exit_codes(capsys, monkeypatch):
    monkeypatch.setenv("WALLET_PATH", "/nonexistent/agent_wallet.json")

    assert deposit_main(["abc", "USDC"]) == 1
    err = capsys.readouterr().err
    assert "Invalid input" in err
    assert "jubilee-deposit" in err

    assert deposit_main(["1", "USDC"]) == 1
    assert "Wallet file not found" in capsys.readouterr().err


# Withdraw ---------------------------------------------------------------

def test_large_withdrawal_warns_but_proceeds(chain, account, config, capsys):
    chain.give_shares(JUSDI, AGENT, 100_000_000)

    run_withdraw("60", "jUSDi", config=config, w3=chain, account=account)

    out = capsys.readouterr().out
    assert "Large withdrawal: 60.0% of your current jUSDi holdings" in out
    assert chain.sent_calls() == ["withdraw"]
    assert chain.tokens[USDC.lower()].balances[AGENT.lower()] == 60_000_000
    assert "Vault: 40.0 USDC" in out


def test_small_withdrawal_has_no_warning(chain, account, config, capsys):
    chain.give_shares(JUSDI, AGENT, 100_000_000)

    run_withdraw("40", "JUSDI", config=config, w3=chain, account=account)

    assert "Large withdrawal" not in capsys.readouterr().out
    assert chain.sent_calls() == ["withdraw"]


def test_withdrawal_basis_after_is_configurable(chain, account, capsys):
    config = load_config({"LARGE_WITHDRAWAL_BASIS": "after", "LARGE_WITHDRAWAL_THRESHOLD": "0.5"})
    chain.give_shares(JUSDI, AGENT, 100_000_000)

    run_withdraw("40", "jUSDi", config=config, w3=chain, account=account)

    assert "of your remaining jUSDi holdings" in capsys.readouterr().out


def test_withdraw_more_than_holdings(chain, account, config):
    chain.give_shares(JUSDI, AGENT, 100_000_000)

    with pytest.raises(InsufficientBalanceError) as excinfo:
        run_withdraw("150", "jUSDi", config=config, w3=chain, account=account)

    assert "Insufficient balance. Available: 100.0 USDC" in excinfo.value.message
    assert chain.sent == []


def test_withdraw_without_holdings(chain, account, config):
    with pytest.raises(InsufficientBalanceError) as excinfo:
        run_withdraw("1", "jUSDi", config=config, w3=chain, account=account)

    assert excinfo.value.message.startswith("No jUSDi holdings")


def test_withdraw_unknown_vault(config):
    with pytest.raises(ValidationError):
        run_withdraw("1", "jSOLi", config=config)


def test_withdrawal_share_math():
    assert withdrawal_share(60, 100) == Decimal("0.6")
    assert withdrawal_share(40, 100, "after") == Decimal(40) / Decimal(60)
    assert withdrawal_share(100, 100, "after") is None
    assert is_large_withdrawal(51, 100, Decimal("0.5"))
    assert not is_large_withdrawal(50, 100, Decimal("0.5"))
    assert is_large_withdrawal(100, 100, Decimal("0.5"), "after")
    assert not is_large_withdrawal(10, 0, Decimal("0.5"))


# Donate -----------------------------------------------------------------

def test_donate_withdraws_then_transfers(chain, account, config, capsys):
    chain.give_shares(JUSDI, AGENT, 100_000_000)

    outcome = run_donate("10", RECIPIENT, config=config, w3=chain, account=account)

    assert chain.sent_calls() == ["withdraw", "transfer"]
    assert chain.tokens[USDC.lower()].balances[RECIPIENT.lower()] == 10_000_000
    assert outcome.label == "Donation"
    assert "Spent the harvest, kept the seed." in capsys.readouterr().out


def test_donate_rejects_bad_recipient_before_network(config):
    with pytest.raises(ValidationError) as excinfo:
        run_donate("10", "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb", config=config)
    assert "recipient address" in excinfo.value.message


def test_donate_rejects_broken_checksum(config):
    with pytest.raises(ValidationError):
        run_donate("1", "0x000000000000000000000000000000000000DeAd", config=config)


def test_donate_without_holdings_sends_nothing(chain, account, config):
    with pytest.raises(InsufficientBalanceError):
        run_donate("10", RECIPIENT, config=config, w3=chain, account=account)
    assert chain.sent == []


# Swap -------------------------------------------------------------------

def _quote_client(quote):
    client = MagicMock()
    client.get_quote.return_value = quote
    return client


def test_swap_eth_to_usdc_buffers_gas_and_skips_approval(chain, account, config, capsys):
    quote = SwapQuote(
        buy_amount=25_000_000, to=SWAP_ROUTER, data="0xabcdef", value=10 ** 16, gas=200_000, price="2500",
    )
    client = _quote_client(quote)

    run_swap("0.01", "eth", "usdc", config=config, w3=chain, account=account, quote_client=client)

    client.get_quote.assert_called_once_with(8453, NATIVE_TOKEN, USDC, 10 ** 16, AGENT)
    assert chain.sent_calls() == ["raw"]
    tx = chain.sent[0]
    assert tx["to"] == SWAP_ROUTER
    assert tx["data"] == "0xabcdef"
    assert tx["value"] == 10 ** 16
    assert tx["gas"] == 240_000
    out = capsys.readouterr().out
    assert "Expected output: 25.0 USDC" in out
    assert "View on BaseScan" in out


def test_swap_token_approves_twice_the_amount(chain, account, config):
    chain.fund(USDC, AGENT, 100_000_000)
    quote = SwapQuote(
        buy_amount=10 ** 16, to=SWAP_ROUTER, data="0x01", value=0, gas=300_000,
        allowance_spender=SWAP_SPENDER,
    )

    run_swap("25", "USDC", "WETH", config=config, w3=chain, account=account, quote_client=_quote_client(quote))

    assert chain.sent_calls() == ["approve", "raw"]
    spender, amount = chain.sent[0]["_call"][1]
    assert spender == SWAP_SPENDER
    assert amount == 50_000_000
    assert chain.sent[0]["to"] == USDC


def test_swap_insufficient_balance_skips_quote(chain, account, config):
    client = _quote_client(None)

    with pytest.raises(InsufficientBalanceError):
        run_swap("5", "USDC", "WETH", config=config, w3=chain, account=account, quote_client=client)

    client.get_quote.assert_not_called()
    assert chain.sent == []


def test_swap_quote_rejection_sends_nothing(chain, account, config):
    chain.fund(USDC, AGENT, 100_000_000)
    client = MagicMock()
    client.get_quote.side_effect = QuoteRejectedError("INSUFFICIENT_ASSET_LIQUIDITY", status_code=400)

    with pytest.raises(QuoteRejectedError):
        run_swap("25", "USDC", "cbBTC", config=config, w3=chain, account=account, quote_client=client)
    assert chain.sent == []


def test_swap_simulation_failure_sends_nothing(chain, account, config):
    chain.revert_on["raw"] = "Transfer amount exceeds balance"
    quote = SwapQuote(buy_amount=1, to=SWAP_ROUTER, data="0x01", value=10 ** 16, gas=200_000)

    with pytest.raises(SimulationError) as excinfo:
        run_swap("0.01", "ETH", "USDC", config=config, w3=chain, account=account,
                 quote_client=_quote_client(quote))

    assert "Transfer amount exceeds balance" in excinfo.value.message
    assert chain.sent == []


@pytest.mark.parametrize("pair", [("USDC", "usdc"), ("WBTC", "USDC"), ("ETH", "DOGE")])
def test_swap_rejects_bad_pairs(pair, config):
    with pytest.raises(ValidationError):
        run_swap("1", pair[0], pair[1], config=config)


def test_swap_token_missing_on_chain(config):
    with pytest.raises(ValidationError) as excinfo:
        run_swap("1", "ETH", "USDC", "baseSepolia", config=config)
    assert "not available on baseSepolia" in excinfo.value.message


# Reports ----------------------------------------------------------------

def test_balance_report_totals_stablecoins(chain, account, config, capsys):
    chain.give_shares(JUSDI, AGENT, 1_234_560_000)
    chain.give_shares(JBTCI, AGENT, 10 ** 7)

    report = run_balance(config=config, w3=chain, account=account)

    assert report.stable_value == Decimal("1234.56")
    assert [p.ref.name for p in report.positions] == ["jUSDi", "jBTCi"]
    out = capsys.readouterr().out
    assert "Total Treasury Value: ~$1,234.56" in out
    assert "Requires BTC price oracle" in out
    assert "Gas Balance: 0.05 ETH" in out


def test_balance_report_continues_past_broken_vault(chain, account, config, capsys):
    chain.give_shares(JUSDI, AGENT, 5_000_000)

    def read(address, name, args, _orig=chain.read):
        if address.lower() == JBTCI.lower():
            raise ValueError("execution reverted")
        return _orig(address, name, args)

    chain.read = read
    report = run_balance(config=config, w3=chain, account=account)

    assert [p.ref.name for p in report.positions] == ["jUSDi"]
    assert report.errors and report.errors[0].startswith("jBTCi")


def test_status_reports_tvl_and_optional_managed_balance(chain, config, capsys):
    chain.give_shares(JUSDI, AGENT, 2_000_000)

    statuses = run_status(config=config, w3=chain)

    by_name = {s.name: s for s in statuses}
    assert by_name["jUSDi"].total_assets == 2_000_000
    assert by_name["jUSDi"].managed_balance == 2_000_000
    assert by_name["jBTCi"].managed_balance is None
    assert not by_name["jBTCi"].active
    out = capsys.readouterr().out
    assert "Target APY: 3-6% (estimated)" in out
    assert "Target APY: 6-8% (estimated)" in out
    assert "Vault has no deposits yet" in out


def test_status_does_not_hide_connection_failures(chain, config, capsys):
    chain.fail_reads["managedBalanceOf"] = requests.ConnectionError("connection reset")

    statuses = run_status(config=config, w3=chain)

    assert statuses == []
    assert "Error fetching jUSDi data" in capsys.readouterr().err


def test_run_command_maps_errors_to_exit_codes(capsys):
    def bad():
        raise ValidationError("Amount must be greater than 0")

    assert cli_output.run_command("withdraw", "Withdrawal", bad) == 1
    assert "jubilee-withdraw" in capsys.readouterr().err
    assert cli_output.run_command("withdraw", "Withdrawal", lambda: None) == 0
