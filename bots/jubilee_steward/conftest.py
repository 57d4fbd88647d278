#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Shared fixtures: base-mainnet config and an in-memory chain."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add the current directory to the path
sys.path.insert(0, str(Path(__file__).parent))

from fake_chain import AGENT, CBBTC, JBTCI, JUSDI, USDC, WETH, FakeAccount, FakeChain  # noqa: E402
from vault_config import load_config  # noqa: E402


@pytest.fixture
def config():
    return load_config({"WALLET_PATH": "/nonexistent/agent_wallet.json"})


@pytest.fixture
def account():
    return FakeAccount()


@pytest.fixture
def chain():
    """Base mainnet with USDC, cbBTC, WETH and both Jubilee vaults."""
    w3 = FakeChain(8453)
    w3.add_token(USDC, "USDC", 6)
    w3.add_token(CBBTC, "cbBTC", 8)
    w3.add_token(WETH, "WETH", 18)
    w3.add_vault(JUSDI, USDC)
    w3.add_vault(JBTCI, CBBTC, managed=False)
    w3.native[AGENT.lower()] = 5 * 10 ** 16
    return w3
