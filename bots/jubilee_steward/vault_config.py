#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Network, vault and swap-service configuration.

The static tables below are turned into one frozen ``StewardConfig`` per
process by ``load_config``. Environment variables (optionally from a local
``.env``) override RPC endpoints, the swap service and the report knobs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from tx_errors import ValidationError

# 0x convention for the chain's native gas asset
NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
NATIVE_DECIMALS = 18

DEFAULT_WALLET_PATH = (
    Path.home() / ".openclaw" / "workspace" / "setup_wallet_dir_new" / "wallets" / "agent_wallet.json"
)

ZEROX_QUOTE_URL = "https://api.0x.org/swap/permit2/quote"

SWAP_TOKENS: Tuple[str, ...] = ("ETH", "WETH", "USDC", "cbBTC")
STABLE_SYMBOLS = frozenset({"USDC", "USDT"})


@dataclass(frozen=True)
class VaultRef:
    name: str
    vault: str
    token: Optional[str] = None
    accepts: Tuple[str, ...] = ()
    target_apy: str = "n/a"


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    chain_id: int
    rpc_url: str
    explorer_url: str
    vaults: Mapping[str, VaultRef]
    assets: Mapping[str, str]

    def vault(self, name: str) -> VaultRef:
        return self.vaults[_canonical(name, self.vaults)]

    def asset_address(self, symbol: str) -> Optional[str]:
        key = _lookup(symbol, self.assets)
        return self.assets[key] if key else None

    def vault_for_asset(self, symbol: str) -> Optional[VaultRef]:
        for ref in self.vaults.values():
            if any(symbol.lower() == accepted.lower() for accepted in ref.accepts):
                return ref
        return None

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"


@dataclass(frozen=True)
class SwapApiConfig:
    base_url: str
    api_key: Optional[str]
    api_version: str = "v2"
    timeout: float = 10.0
    slippage: Decimal = Decimal("0.01")
    gas_buffer: Decimal = Decimal("1.2")

    @property
    def headers(self) -> Mapping[str, str]:
        headers = {"0x-version": self.api_version}
        if self.api_key:
            headers["0x-api-key"] = self.api_key
        return MappingProxyType(headers)


@dataclass(frozen=True)
class StewardConfig:
    networks: Mapping[str, NetworkConfig]
    default_chain: str
    swap: SwapApiConfig
    wallet_path: Path = DEFAULT_WALLET_PATH
    large_withdrawal_threshold: Decimal = Decimal("0.5")
    large_withdrawal_basis: str = "before"
    monthly_burn_usd: Decimal = Decimal("50")
    target_apy: Decimal = Decimal("0.05")
    gas_reserve_min_eth: Decimal = Decimal("0.01")
    receipt_timeout: int = 180

    def network(self, chain: str) -> NetworkConfig:
        return self.networks[_canonical(chain, self.networks)]


def _lookup(name: str, table: Mapping[str, object]) -> Optional[str]:
    if name in table:
        return name
    lowered = name.lower()
    for key in table:
        if key.lower() == lowered:
            return key
    return None


def _canonical(name: str, table: Mapping[str, object]) -> str:
    key = _lookup(name, table)
    if key is None:
        raise KeyError(name)
    return key


def _base_network(env: Mapping[str, str]) -> NetworkConfig:
    vaults = {
        "jUSDi": VaultRef(
            name="jUSDi",
            vault="0x26c39532C0dD06C0c4EddAeE36979626b16c77aC",
            token="0x04cC650F6dB0B91Ef910a4a54F22232771988432",
            accepts=("USDC", "USDT"),
            target_apy="3-6%",
        ),
        "jBTCi": VaultRef(
            name="jBTCi",
            vault="0x8a4C0254258F0D3dB7Bc5C5A43825Bb4EfC81337",
            token="0x8a4C0254258F0D3dB7Bc5C5A43825Bb4EfC81337",
            accepts=("cbBTC",),
            target_apy="6-8%",
        ),
    }
    assets = {
        "USDC": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        "USDT": "0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2",
        "cbBTC": "0xcbB7C0000aB88B473b1f5aFd9ef808440eed33Bf",
        "WETH": "0x4200000000000000000000000000000000000006",
        "ETH": NATIVE_TOKEN,
    }
    return NetworkConfig(
        name="base",
        chain_id=8453,
        rpc_url=env.get("RPC_BASE") or "https://mainnet.base.org",
        explorer_url="https://basescan.org",
        vaults=MappingProxyType(vaults),
        assets=MappingProxyType(assets),
    )


def _base_sepolia_network(env: Mapping[str, str]) -> NetworkConfig:
    vaults = {
        "jUSDi": VaultRef(
            name="jUSDi",
            vault="0xc698e233fbB9810Ae0F22e154Ee0912Fa188C69c",
            token="0x04cC650F6dB0B91Ef910a4a54F22232771988432",
            accepts=("USDC", "USDT"),
            target_apy="3-6%",
        ),
    }
    return NetworkConfig(
        name="baseSepolia",
        chain_id=84532,
        rpc_url=env.get("RPC_BASE_SEPOLIA") or "https://sepolia.base.org",
        explorer_url="https://sepolia.basescan.org",
        vaults=MappingProxyType(vaults),
        assets=MappingProxyType({"ETH": NATIVE_TOKEN}),
    )


def _decimal_env(env: Mapping[str, str], name: str, default: str) -> Decimal:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return Decimal(default)
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise ValidationError(f"{name} must be a number, got {raw!r}", field=name, value=raw)
    if not value.is_finite() or value < 0:
        raise ValidationError(f"{name} must be a non-negative number, got {raw!r}", field=name, value=raw)
    return value


def load_config(env: Optional[Mapping[str, str]] = None) -> StewardConfig:
    """Build the immutable configuration for this process.

    Args:
        env: Environment mapping; defaults to ``os.environ`` after loading ``.env``

    Returns:
        Frozen ``StewardConfig``

    Raises:
        ValidationError: an override is malformed
    """
    if env is None:
        load_dotenv()
        env = os.environ

    networks = {net.name: net for net in (_base_network(env), _base_sepolia_network(env))}

    default_chain = env.get("DEFAULT_CHAIN") or "base"
    key = _lookup(default_chain, networks)
    if key is None:
        raise ValidationError(
            f"DEFAULT_CHAIN {default_chain!r} is not configured. Valid options: {', '.join(networks)}",
            field="DEFAULT_CHAIN",
            value=default_chain,
        )

    basis = (env.get("LARGE_WITHDRAWAL_BASIS") or "before").strip().lower()
    if basis not in ("before", "after"):
        raise ValidationError(
            "LARGE_WITHDRAWAL_BASIS must be 'before' or 'after'",
            field="LARGE_WITHDRAWAL_BASIS",
            value=basis,
        )

    swap = SwapApiConfig(
        base_url=(env.get("ZEROX_API_URL") or ZEROX_QUOTE_URL).rstrip("/"),
        api_key=env.get("ZEROX_API_KEY") or None,
        api_version=env.get("ZEROX_API_VERSION") or "v2",
        timeout=float(_decimal_env(env, "SWAP_QUOTE_TIMEOUT_S", "10")),
        slippage=_decimal_env(env, "SWAP_SLIPPAGE", "0.01"),
        gas_buffer=_decimal_env(env, "SWAP_GAS_BUFFER", "1.2"),
    )

    wallet_path = env.get("WALLET_PATH")

    return StewardConfig(
        networks=MappingProxyType(networks),
        default_chain=key,
        swap=swap,
        wallet_path=Path(wallet_path).expanduser() if wallet_path else DEFAULT_WALLET_PATH,
        large_withdrawal_threshold=_decimal_env(env, "LARGE_WITHDRAWAL_THRESHOLD", "0.5"),
        large_withdrawal_basis=basis,
        monthly_burn_usd=_decimal_env(env, "MONTHLY_BURN_USD", "50"),
        target_apy=_decimal_env(env, "TARGET_APY", "0.05"),
        gas_reserve_min_eth=_decimal_env(env, "GAS_RESERVE_MIN_ETH", "0.01"),
        receipt_timeout=int(_decimal_env(env, "RECEIPT_TIMEOUT_S", "180")),
    )
