#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Read a wallet's position in one vault."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from safe_math import format_units, from_units
from sequencer import TxSequencer
from tx_errors import InsufficientBalanceError
from vault_config import VaultRef


@dataclass(frozen=True)
class VaultPosition:
    ref: VaultRef
    underlying: str
    symbol: str
    decimals: int
    shares: int
    share_decimals: int
    assets: int

    @property
    def shares_text(self) -> str:
        return format_units(self.shares, self.share_decimals)

    @property
    def assets_text(self) -> str:
        return format_units(self.assets, self.decimals)

    @property
    def assets_value(self) -> Decimal:
        return from_units(self.assets, self.decimals)


def read_underlying(seq: TxSequencer, ref: VaultRef):
    """Underlying asset address, decimals and symbol of a vault."""
    vault = seq.vault(ref.vault)
    underlying = seq.rpc(f"{ref.name} asset()", lambda: vault.functions.asset().call())
    return underlying, seq.decimals(underlying), seq.symbol(underlying)


def read_position(seq: TxSequencer, ref: VaultRef, owner: Optional[str] = None) -> VaultPosition:
    owner = owner or seq.address
    vault = seq.vault(ref.vault)
    underlying, decimals, symbol = read_underlying(seq, ref)
    shares = seq.balance_of(ref.vault, owner)
    assets = 0
    if shares > 0:
        assets = seq.rpc(
            f"{ref.name} convertToAssets()", lambda: vault.functions.convertToAssets(shares).call()
        )
    return VaultPosition(
        ref=ref,
        underlying=underlying,
        symbol=symbol,
        decimals=decimals,
        shares=shares,
        share_decimals=seq.decimals(ref.vault),
        assets=assets,
    )


def require_holdings(position: VaultPosition, units: int, amount_text: str) -> None:
    """Raise unless the position covers ``units`` of the underlying."""
    if position.shares == 0:
        raise InsufficientBalanceError(
            symbol=position.symbol,
            available="0.0",
            required=amount_text,
            subject=f"No {position.ref.name} holdings",
        )
    if units > position.assets:
        raise InsufficientBalanceError(
            symbol=position.symbol,
            available=position.assets_text,
            required=amount_text,
            subject="Insufficient balance",
        )
