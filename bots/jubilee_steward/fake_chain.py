#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""In-memory stand-ins for the web3 surface the steward modules use.

``FakeChain`` plays the role of ``Web3`` (``w3.eth`` is the chain itself) and
keeps just enough ERC-20 / ERC-4626 state for the commands to run end to end:
balances, allowances, vault shares. Every signed transaction is recorded in
``chain.sent`` so tests can count what reached the network.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Dict, List, Optional, Tuple

from web3.exceptions import ContractLogicError

AGENT = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x000000000000000000000000000000000000dEaD"
SWAP_SPENDER = "0x000000000022D473030F116dDEE9F6B43aC78BA3"
SWAP_ROUTER = "0x0000000000001fF3684f28c67538d4D072C22734"

USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
CBBTC = "0xcbB7C0000aB88B473b1f5aFd9ef808440eed33Bf"
WETH = "0x4200000000000000000000000000000000000006"
JUSDI = "0x26c39532C0dD06C0c4EddAeE36979626b16c77aC"
JBTCI = "0x8a4C0254258F0D3dB7Bc5C5A43825Bb4EfC81337"

class FakeToken:
    def __init__(self, symbol: str, decimals: int):
        self.symbol = symbol
        self.decimals = decimals
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[Tuple[str, str], int] = {}

class FakeVault:
    def __init__(self, asset: str, asset_decimals: int, managed: bool = True):
        self.asset = asset
        self.decimals = 18
        self.scale = 10 ** (18 - asset_decimals)
        self.shares: Dict[str, int] = {}
        self.total_assets = 0
        self.managed = managed

class FakeCall:
    def __init__(self, chain: "FakeChain", address: str, name: str, args: tuple):
        self.chain = chain
        self.address = address
        self.name = name
        self.args = args

    def call(self):
        return self.chain.read(self.address, self.name, self.args)

    def estimate_gas(self, params=None):
        self.chain.estimates.append(self.name)
        reason = self.chain.revert_on.get(self.name)
        if reason:
            raise ContractLogicError(f"execution reverted: {reason}")
        return 50_000

    def build_transaction(self, params):
        tx = dict(params)
        tx.update({"to": self.address, "data": "0x" + self.name.encode().hex(), "_call": (self.name, self.args)})
        return tx

class FakeFunctions:
    def __init__(self, chain: "FakeChain", address: str):
        self._chain = chain
        self._address = address

    def __getattr__(self, name):
        return lambda *args: FakeCall(self._chain, self._address, name, args)

class FakeContract:
    def __init__(self, chain: "FakeChain", address: str):
        self.address = address
        self.functions = FakeFunctions(chain, address)

class FakeAccount:
    def __init__(self, address: str = AGENT):
        self.address = address

    def sign_transaction(self, tx):
        return SimpleNamespace(raw_transaction=tx)

class FakeChain:
    """Minimal ``Web3`` double; ``self.eth`` is ``self``."""

    def __init__(self, chain_id: int = 8453):
        self.eth = self
        self.chain_id = chain_id
        self.gas_price = 1_000_000
        self.native: Dict[str, int] = {}
        self.tokens: Dict[str, FakeToken] = {}
        self.vaults: Dict[str, FakeVault] = {}
        self.sent: List[dict] = []
        self.estimates: List[str] = []
        self.revert_on: Dict[str, str] = {}
        self.fail_reads: Dict[str, Exception] = {}
        self.receipt_status = 1
        self.block = 100

    # setup helpers
    def add_token(self, address: str, symbol: str, decimals: int) -> FakeToken:
        token = FakeToken(symbol, decimals)
        self.tokens[address.lower()] = token
        return token

    def add_vault(self, address: str, asset: str, managed: bool = True) -> FakeVault:
        asset_token = self.tokens[asset.lower()]
        vault = FakeVault(asset, asset_token.decimals, managed=managed)
        self.vaults[address.lower()] = vault
        return vault

    def fund(self, token: str, owner: str, amount: int) -> None:
        bucket = self.tokens[token.lower()].balances
        bucket[owner.lower()] = bucket.get(owner.lower(), 0) + amount

    def give_shares(self, vault: str, owner: str, assets: int) -> None:
        v = self.vaults[vault.lower()]
        v.shares[owner.lower()] = v.shares.get(owner.lower(), 0) + assets * v.scale
        v.total_assets += assets
        self.fund(v.asset, vault, assets)

    # web3 surface
    def contract(self, address=None, abi=None):
        return FakeContract(self, address)

    def get_balance(self, owner):
        return self.native.get(owner.lower(), 0)

    def estimate_gas(self, tx):
        self.estimates.append("raw")
        reason = self.revert_on.get("raw")
        if reason:
            raise ContractLogicError(f"execution reverted: {reason}")
        return 150_000

    def get_transaction_count(self, owner, block_identifier="latest"):
        return len(self.sent)

    def send_raw_transaction(self, raw_tx):
        self.sent.append(raw_tx)
        self.apply(raw_tx)
        return bytes([len(self.sent)]) * 32

    def wait_for_transaction_receipt(self, tx_hash, timeout=120):
        self.block += 1
        return {"status": self.receipt_status, "blockNumber": self.block, "gasUsed": 42_000}

    # state
    def read(self, address: str, name: str, args: tuple):
        key = address.lower()
        if name in self.fail_reads:
            raise self.fail_reads[name]
        if key in self.vaults:
            vault = self.vaults[key]
            if name == "asset":
                return vault.asset
            if name == "decimals":
                return vault.decimals
            if name == "balanceOf":
                return vault.shares.get(args[0].lower(), 0)
            if name == "convertToAssets":
                return args[0] // vault.scale
            if name == "convertToShares":
                return args[0] * vault.scale
            if name == "totalAssets":
                return vault.total_assets
            if name == "managedBalanceOf":
                if not vault.managed:
                    raise ContractLogicError("execution reverted")
                return vault.total_assets
        token = self.tokens[key]
        if name == "decimals":
            return token.decimals
        if name == "symbol":
            return token.symbol
        if name == "name":
            return token.symbol
        if name == "balanceOf":
            return token.balances.get(args[0].lower(), 0)
        if name == "allowance":
            return token.allowances.get((args[0].lower(), args[1].lower()), 0)
        raise AssertionError(f"unexpected read {name} on {address}")

    def apply(self, tx: dict) -> None:
        if self.receipt_status != 1 or "_call" not in tx:
            return
        name, args = tx["_call"]
        sender = tx["from"].lower()
        key = tx["to"].lower()
        if key in self.vaults:
            vault = self.vaults[key]
            if name == "deposit":
                assets, receiver = args
                self._move(vault.asset, sender, key, assets)
                vault.shares[receiver.lower()] = vault.shares.get(receiver.lower(), 0) + assets * vault.scale
                vault.total_assets += assets
            elif name == "withdraw":
                assets, receiver, owner = args
                vault.shares[owner.lower()] -= assets * vault.scale
                vault.total_assets -= assets
                self._move(vault.asset, key, receiver.lower(), assets)
            return
        token = self.tokens[key]
        if name == "approve":
            spender, amount = args
            token.allowances[(sender, spender.lower())] = amount
        elif name == "transfer":
            to, amount = args
            self._move(tx["to"], sender, to.lower(), amount)

    def _move(self, token: str, src: str, dst: str, amount: int) -> None:
        balances = self.tokens[token.lower()].balances
        balances[src] = balances.get(src, 0) - amount
        balances[dst] = balances.get(dst, 0) + amount

    def sent_calls(self) -> List[Optional[str]]:
        return [tx.get("_call", ("raw",))[0] for tx in self.sent]

