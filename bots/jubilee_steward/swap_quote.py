#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""0x swap quote client.

The returned transaction is treated as opaque: callers forward ``to``,
``data`` and ``value`` unchanged and only scale the quoted gas.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

import requests

from input_validation import sanitize_string_for_log
from logging_config import get_logger
from tx_errors import ExternalServiceError, QuoteRejectedError, QuoteTimeoutError
from vault_config import SwapApiConfig

logger = get_logger(__name__)


@dataclass(frozen=True)
class SwapQuote:
    buy_amount: int
    to: str
    data: str
    value: int
    gas: int
    price: Optional[str] = None
    gas_price: Optional[int] = None
    allowance_spender: Optional[str] = None

    def gas_limit(self, buffer: Decimal) -> int:
        return int(Decimal(self.gas) * buffer)

    def transaction(self, buffer: Decimal) -> Dict[str, object]:
        tx: Dict[str, object] = {
            "to": self.to,
            "data": self.data,
            "value": self.value,
            "gas": self.gas_limit(buffer),
        }
        if self.gas_price:
            tx["gasPrice"] = self.gas_price
        return tx


def _int_safe(value) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _rejection_reason(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return sanitize_string_for_log(resp.text or resp.reason or f"HTTP {resp.status_code}", 300)
    if isinstance(payload, dict):
        reason = payload.get("reason") or payload.get("message") or payload.get("name")
        if reason:
            return sanitize_string_for_log(str(reason), 300)
    return sanitize_string_for_log(str(payload), 300)


def parse_quote(payload: Dict[str, object]) -> SwapQuote:
    """Turn a quote response body into a ``SwapQuote``.

    Raises:
        QuoteRejectedError: the body carries no executable transaction
    """
    if not isinstance(payload, dict):
        raise QuoteRejectedError("unexpected quote response")

    tx = payload.get("transaction")
    if not isinstance(tx, dict) or not tx.get("to") or not tx.get("data"):
        if payload.get("liquidityAvailable") is False:
            raise QuoteRejectedError("no liquidity available for this pair")
        raise QuoteRejectedError("quote response has no transaction")

    spender = None
    issues = payload.get("issues")
    if isinstance(issues, dict) and isinstance(issues.get("allowance"), dict):
        spender = issues["allowance"].get("spender")

    return SwapQuote(
        buy_amount=_int_safe(payload.get("buyAmount")),
        to=str(tx["to"]),
        data=str(tx["data"]),
        value=_int_safe(tx.get("value")),
        gas=_int_safe(tx.get("gas")),
        price=str(payload["price"]) if payload.get("price") is not None else None,
        gas_price=_int_safe(tx.get("gasPrice")) or None,
        allowance_spender=spender,
    )


class ZeroExQuoteClient:
    def __init__(self, settings: SwapApiConfig, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session

    def get_quote(
        self,
        chain_id: int,
        sell_token: str,
        buy_token: str,
        sell_amount: int,
        taker: str,
    ) -> SwapQuote:
        params = {
            "chainId": str(chain_id),
            "sellToken": sell_token,
            "buyToken": buy_token,
            "sellAmount": str(sell_amount),
            "taker": taker,
            "slippagePercentage": str(self.settings.slippage),
        }
        getter = self.session.get if self.session is not None else requests.get
        logger.debug("0x quote request %s", params)

        try:
            resp = getter(
                self.settings.base_url,
                params=params,
                headers=dict(self.settings.headers),
                timeout=self.settings.timeout,
            )
        except requests.Timeout as exc:
            raise QuoteTimeoutError(self.settings.timeout) from exc
        except requests.RequestException as exc:
            raise ExternalServiceError(f"Failed to get quote: {exc}") from exc

        if not resp.ok:
            reason = _rejection_reason(resp)
            logger.warning("0x quote rejected (%s): %s", resp.status_code, reason)
            raise QuoteRejectedError(reason, status_code=resp.status_code)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise QuoteRejectedError("invalid JSON from swap API", status_code=resp.status_code) from exc

        quote = parse_quote(payload)
        logger.debug("0x quote: buyAmount=%s gas=%s to=%s", quote.buy_amount, quote.gas, quote.to)
        return quote
