#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Conversions between human-readable amounts and integer token units."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

from tx_errors import ValidationError

MAX_DECIMALS = 77  # uint8 decimals, but 10**77 is the largest power below 2**256
EXACT_PRECISION = 200


def safe_decimals(value: int) -> int:
    """Check a token's ``decimals()`` answer before it is used as an exponent."""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_DECIMALS:
        raise ValueError(f"token reported invalid decimals: {value!r}")
    return value


def fraction_digits(amount: Decimal) -> int:
    exponent = amount.as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def to_units(amount: Union[str, Decimal], decimals: int, symbol: str = "") -> int:
    """
    Convert a human amount to integer units of a token with ``decimals``.

    The conversion is exact: an amount with more fractional digits than the
    token supports is rejected rather than truncated.

    Args:
        amount: Amount as text or Decimal (e.g. "100", "0.015")
        decimals: Token decimals
        symbol: Token symbol used in the error message

    Returns:
        Integer amount in smallest units

    Raises:
        ValidationError: amount is not a number or too precise for the token
    """
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValidationError(f'Invalid amount: "{amount}". Must be a number.', field="amount", value=str(amount))

    if not value.is_finite():
        raise ValidationError(f'Invalid amount: "{amount}". Must be a finite number.', field="amount", value=str(amount))

    with localcontext() as ctx:
        ctx.prec = EXACT_PRECISION
        # trailing zeros past the token precision are fine
        if value != value.quantize(Decimal(1).scaleb(-decimals)):
            label = f"{symbol} " if symbol else ""
            raise ValidationError(
                f"Amount has too many decimal places for {label}(max: {decimals})",
                field="amount",
                value=str(amount),
            )
        return int(value.scaleb(decimals))


def from_units(units: int, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = EXACT_PRECISION
        return Decimal(int(units)).scaleb(-decimals)


def format_units(units: int, decimals: int) -> str:
    """
    Render integer units as a decimal string, always with a fractional part.

    Examples:
        >>> format_units(100_000_000, 6)
        '100.0'
        >>> format_units(1_500_000, 6)
        '1.5'
        >>> format_units(1, 18)
        '0.000000000000000001'
    """
    units = int(units)
    sign = "-" if units < 0 else ""
    whole, frac = divmod(abs(units), 10 ** decimals) if decimals else (abs(units), 0)
    frac_text = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_text or '0'}"
