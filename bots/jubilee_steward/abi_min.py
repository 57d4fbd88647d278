#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Minimal ABIs for the ERC-4626 vaults and their ERC-20 assets."""

from __future__ import annotations


def _view(name: str, inputs: list, output_type: str) -> dict:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": inputs,
        "outputs": [{"name": "", "type": output_type}],
    }


def _write(name: str, inputs: list, output_type: str) -> dict:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": inputs,
        "outputs": [{"name": "", "type": output_type}],
    }


_ADDRESS = lambda name: {"name": name, "type": "address"}  # noqa: E731
_UINT = lambda name: {"name": name, "type": "uint256"}  # noqa: E731


ERC20_ABI = [
    _view("balanceOf", [_ADDRESS("account")], "uint256"),
    _view("decimals", [], "uint8"),
    _view("symbol", [], "string"),
    _view("name", [], "string"),
    _view("allowance", [_ADDRESS("owner"), _ADDRESS("spender")], "uint256"),
    _write("approve", [_ADDRESS("spender"), _UINT("amount")], "bool"),
    _write("transfer", [_ADDRESS("to"), _UINT("amount")], "bool"),
]

ERC4626_ABI = [
    _view("totalAssets", [], "uint256"),
    _view("balanceOf", [_ADDRESS("account")], "uint256"),
    _view("decimals", [], "uint8"),
    _view("convertToAssets", [_UINT("shares")], "uint256"),
    _view("convertToShares", [_UINT("assets")], "uint256"),
    _view("asset", [], "address"),
    _view("managedBalanceOf", [_ADDRESS("asset")], "uint256"),
    _write("deposit", [_UINT("assets"), _ADDRESS("receiver")], "uint256"),
    _write(
        "withdraw",
        [_UINT("assets"), _ADDRESS("receiver"), _ADDRESS("owner")],
        "uint256",
    ),
    {
        "anonymous": False,
        "name": "Deposit",
        "type": "event",
        "inputs": [
            {"indexed": True, "name": "sender", "type": "address"},
            {"indexed": True, "name": "owner", "type": "address"},
            {"indexed": False, "name": "assets", "type": "uint256"},
            {"indexed": False, "name": "shares", "type": "uint256"},
        ],
    },
    {
        "anonymous": False,
        "name": "Withdraw",
        "type": "event",
        "inputs": [
            {"indexed": True, "name": "sender", "type": "address"},
            {"indexed": True, "name": "receiver", "type": "address"},
            {"indexed": True, "name": "owner", "type": "address"},
            {"indexed": False, "name": "assets", "type": "uint256"},
            {"indexed": False, "name": "shares", "type": "uint256"},
        ],
    },
]
