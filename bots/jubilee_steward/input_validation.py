#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Input validation for the steward commands.

Every check here is pure: it runs before any wallet is loaded or any RPC
endpoint is contacted, and reports problems as ``ValidationError``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from web3 import Web3

from safe_math import fraction_digits
from tx_errors import ValidationError
from vault_config import StewardConfig

MAX_AMOUNT = Decimal("1e15")
MAX_FRACTION_DIGITS = 18

USAGE_EXAMPLES = {
    "deposit": "jubilee-deposit <amount> <asset> [chain]\n   Example: jubilee-deposit 100 USDC base",
    "withdraw": "jubilee-withdraw <amount> <vault> [chain]\n   Example: jubilee-withdraw 50 jUSDi base",
    "donate": (
        "jubilee-donate <amount> <recipient_address> [chain]\n"
        "   Example: jubilee-donate 10 0x000000000000000000000000000000000000dEaD"
    ),
    "swap": "jubilee-swap <amount> <fromToken> <toToken> [chain]\n   Example: jubilee-swap 0.01 ETH USDC base",
    "balance": "jubilee-balance [chain]\n   Example: jubilee-balance base",
    "status": "jubilee-status [chain]\n   Example: jubilee-status baseSepolia",
    "war-room": "jubilee-war-room [chain]\n   Example: jubilee-war-room base",
}


def validate_amount(amount: Optional[str], context: str = "Amount") -> Decimal:
    """Validate a human-entered amount.

    Args:
        amount: Amount text from the command line
        context: Label used in error messages

    Returns:
        The amount as a Decimal

    Raises:
        ValidationError: missing, non-numeric, non-finite, not positive,
            above 1e15 or with more than 18 fractional digits
    """
    if amount is None or str(amount).strip() == "":
        raise ValidationError(f"{context} is required", field="amount")

    text = str(amount).strip()
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValidationError(
            f'Invalid {context.lower()}: "{text}". Must be a number.', field="amount", value=text
        )

    if not value.is_finite():
        raise ValidationError(
            f'Invalid {context.lower()}: "{text}". Must be a finite number.', field="amount", value=text
        )

    if value <= 0:
        raise ValidationError(f"{context} must be greater than 0", field="amount", value=text)

    if value > MAX_AMOUNT:
        raise ValidationError(
            f"{context} too large (max: 1,000,000,000,000,000)", field="amount", value=text
        )

    if fraction_digits(value) > MAX_FRACTION_DIGITS:
        raise ValidationError(
            f"{context} has too many decimal places (max: {MAX_FRACTION_DIGITS})", field="amount", value=text
        )

    return value


def validate_address(address: Optional[str], context: str = "Address") -> str:
    """Validate an EVM address and return its checksummed form.

    Mixed-case input must carry a correct EIP-55 checksum; all-lowercase or
    all-uppercase hex is accepted and checksummed.
    """
    if not address or not str(address).strip():
        raise ValidationError(f"{context} is required", field="address")

    text = str(address).strip()
    body = text[2:] if text[:2].lower() == "0x" else text
    mixed_case = body != body.lower() and body != body.upper()
    if not Web3.is_address(text) or (mixed_case and not Web3.is_checksum_address(text)):
        raise ValidationError(
            f'Invalid {context.lower()}: "{text}". Must be a valid Ethereum address (0x...)',
            field="address",
            value=text,
        )
    return Web3.to_checksum_address(text)


def _match(value: str, options: Iterable[str]) -> Optional[str]:
    lowered = value.lower()
    for option in options:
        if option.lower() == lowered:
            return option
    return None


def validate_chain(chain: Optional[str], config: StewardConfig) -> str:
    """Return the canonical name of a configured network."""
    valid = list(config.networks)
    matched = _match(chain or "", valid)
    if matched is None:
        raise ValidationError(
            f'Invalid chain: "{chain}". Valid options: {", ".join(valid)}', field="chain", value=chain
        )
    return matched


def validate_asset(asset: Optional[str], valid_assets: Iterable[str]) -> str:
    """Return the canonical spelling of an allow-listed asset symbol."""
    if not asset or not asset.strip():
        raise ValidationError("Asset is required", field="asset")

    valid = list(valid_assets)
    matched = _match(asset.strip(), valid)
    if matched is None:
        raise ValidationError(
            f'Unsupported asset: "{asset}". Valid options: {", ".join(valid)}', field="asset", value=asset
        )
    return matched


def validate_vault_name(vault_name: Optional[str], valid_vaults: Iterable[str]) -> str:
    """Return the canonical name of an allow-listed vault."""
    if not vault_name or not vault_name.strip():
        raise ValidationError("Vault name is required", field="vault")

    valid = list(valid_vaults)
    matched = _match(vault_name.strip(), valid)
    if matched is None:
        raise ValidationError(
            f'Unknown vault: "{vault_name}". Valid options: {", ".join(valid)}', field="vault", value=vault_name
        )
    return matched


def sanitize_string_for_log(text: str, max_length: int = 1000) -> str:
    """Strip control characters from text that came from outside (API replies)."""
    if not isinstance(text, str):
        text = str(text)
    sanitized = "".join(c for c in text if c.isprintable() or c in "\n\t")
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "...(truncated)"
    return sanitized
