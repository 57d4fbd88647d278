#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Input validation runs before any network call."""

from __future__ import annotations

from decimal import Decimal

import pytest

from input_validation import (
    sanitize_string_for_log,
    validate_address,
    validate_amount,
    validate_asset,
    validate_chain,
    validate_vault_name,
)
from tx_errors import ValidationError


@pytest.mark.parametrize("amount,expected", [
    ("100", Decimal("100")),
    (" 0.5 ", Decimal("0.5")),
    ("1e15", Decimal("1e15")),
    ("0.000000000000000001", Decimal("1e-18")),
])
def test_valid_amounts(amount, expected):
    assert validate_amount(amount) == expected


@pytest.mark.parametrize("amount,fragment", [
    (None, "required"),
    ("", "required"),
    ("abc", "Must be a number"),
    ("NaN", "finite"),
    ("Infinity", "finite"),
    ("0", "greater than 0"),
    ("-1", "greater than 0"),
    ("1000000000000001", "too large"),
    ("0.0000000000000000001", "too many decimal places"),
])
def test_invalid_amounts(amount, fragment):
    with pytest.raises(ValidationError) as excinfo:
        validate_amount(amount)
    assert fragment in excinfo.value.message
    assert excinfo.value.field == "amount"


def test_address_checksummed():
    assert validate_address("0x000000000000000000000000000000000000dead") == (
        "0x000000000000000000000000000000000000dEaD"
    )


@pytest.mark.parametrize("address", [
    "",
    "0x123",
    "not-an-address",
    # mixed case with a broken checksum
    "0x000000000000000000000000000000000000DeAd",
    "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",
])
def test_invalid_addresses(address):
    with pytest.raises(ValidationError):
        validate_address(address, "Recipient address")


def test_chain_lookup_is_case_insensitive(config):
    assert validate_chain("BASESEPOLIA", config) == "baseSepolia"
    assert validate_chain("base", config) == "base"
    with pytest.raises(ValidationError) as excinfo:
        validate_chain("solana", config)
    assert "base, baseSepolia" in excinfo.value.message


def test_asset_lookup_returns_canonical_spelling():
    assert validate_asset("CBBTC", ["USDC", "cbBTC"]) == "cbBTC"
    with pytest.raises(ValidationError):
        validate_asset("WBTC", ["USDC", "cbBTC"])
    with pytest.raises(ValidationError):
        validate_asset("  ", ["USDC"])


def test_vault_lookup():
    assert validate_vault_name("jusdi", ["jUSDi", "jBTCi"]) == "jUSDi"
    with pytest.raises(ValidationError) as excinfo:
        validate_vault_name("jSOLi", ["jUSDi", "jBTCi"])
    assert excinfo.value.field == "vault"


def test_sanitize_strips_control_characters():
    assert sanitize_string_for_log("bad\x1b[31mreason") == "bad[31mreason"
    assert sanitize_string_for_log("x" * 20, max_length=5) == "xxxxx...(truncated)"
