#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Wallet loading and RPC connection helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_keys.exceptions import ValidationError as KeyValidationError
from web3 import HTTPProvider, Web3

from logging_config import get_logger
from sequencer import TxSequencer
from tx_errors import WalletError
from vault_config import NetworkConfig, StewardConfig

logger = get_logger(__name__)

RPC_TIMEOUT_S = 20


def load_wallet(path: Union[str, Path]) -> LocalAccount:
    """Load the signer from a JSON wallet file ``{"privateKey": "0x..."}``.

    Raises:
        WalletError: file missing, unreadable, encrypted or malformed
    """
    wallet_path = Path(path).expanduser()
    if not wallet_path.exists():
        raise WalletError(f"Wallet file not found at {wallet_path}", path=str(wallet_path))

    try:
        wallet_data = json.loads(wallet_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise WalletError(f"Cannot read wallet file {wallet_path}: {exc}", path=str(wallet_path)) from exc
    except json.JSONDecodeError as exc:
        raise WalletError(f"Wallet file {wallet_path} is not valid JSON", path=str(wallet_path)) from exc

    if not isinstance(wallet_data, dict):
        raise WalletError('Invalid wallet format. Expected { privateKey: "0x..." }', path=str(wallet_path))

    private_key = wallet_data.get("privateKey")
    if not private_key:
        if wallet_data.get("encryptedJson"):
            raise WalletError(
                "Encrypted wallets not yet supported. Use plaintext privateKey.", path=str(wallet_path)
            )
        raise WalletError('Invalid wallet format. Expected { privateKey: "0x..." }', path=str(wallet_path))

    try:
        account = Account.from_key(private_key)
    except (ValueError, TypeError, KeyValidationError) as exc:
        # never echo the key material
        raise WalletError(f"Wallet file {wallet_path} holds a malformed private key", path=str(wallet_path)) from exc

    logger.debug("Loaded wallet %s from %s", account.address, wallet_path)
    return account


def make_w3(network: NetworkConfig, timeout: Optional[float] = None) -> Web3:
    """Web3 client for a configured network."""
    provider = HTTPProvider(network.rpc_url, request_kwargs={"timeout": timeout or RPC_TIMEOUT_S})
    logger.debug("Using RPC %s for %s (chainId %s)", network.rpc_url, network.name, network.chain_id)
    return Web3(provider)


def short_address(address: str) -> str:
    return f"{address[:10]}..."


def connect(
    network: NetworkConfig,
    config: StewardConfig,
    w3: Optional[Web3] = None,
    account: Optional[LocalAccount] = None,
    wallet: bool = True,
) -> TxSequencer:
    """Sequencer bound to ``network``, after checking the RPC serves that chain.

    The wallet is loaded from ``config.wallet_path`` unless ``account`` is given
    or ``wallet`` is False (read-only reports).
    """
    if account is None and wallet:
        account = load_wallet(config.wallet_path)
    sequencer = TxSequencer(
        w3 or make_w3(network),
        account,
        network,
        receipt_timeout=config.receipt_timeout,
    )
    sequencer.verify_network()
    return sequencer
