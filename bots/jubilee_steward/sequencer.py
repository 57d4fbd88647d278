#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Preflight and execution sequencer for state-changing calls.

Every write goes through the same ordered stages, and the first failing
stage stops the run:

1. balance check (insufficient balance short-circuits before any write)
2. allowance check, with one approval transaction when it is too low
3. gas estimation of the primary call (a revert here means nothing is sent)
4. submission, then a blocking wait for one confirmation
5. best-effort read-back of the new balances

Exactly one transaction is in flight at a time. Two processes driving the
same signer concurrently race on nonce and allowance; nothing here
coordinates that.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Optional, TypeVar, Union

import requests
from web3 import Web3
from web3.contract.contract import Contract, ContractFunction
from web3.exceptions import ContractLogicError, Web3Exception

import cli_output
from abi_min import ERC20_ABI, ERC4626_ABI
from logging_config import get_logger
from safe_math import format_units, safe_decimals
from tx_errors import (
    InsufficientBalanceError,
    RpcError,
    SimulationError,
    StewardError,
    TransactionRevertedError,
    revert_reason,
)
from vault_config import NATIVE_DECIMALS, NATIVE_TOKEN, NetworkConfig

logger = get_logger(__name__)

T = TypeVar("T")

RPC_FAILURES = (Web3Exception, ValueError, requests.RequestException, OSError)
CONNECTION_FAILURES = (requests.RequestException, OSError)
DEFAULT_GAS_BUFFER = Decimal("1.2")

Call = Union[ContractFunction, Dict[str, object]]


class ApprovalPolicy(Enum):
    """How much to approve when the current allowance is too low."""

    EXACT = 1  # vault deposits: approve exactly what is needed
    SWAP_BUFFER = 2  # swap spenders: 2x to cover a near-term repeat swap

    @property
    def multiplier(self) -> int:
        return self.value


@dataclass(frozen=True)
class TxOutcome:
    label: str
    tx_hash: str
    block_number: int
    gas_used: int


@dataclass(frozen=True)
class TransferIntent:
    """Source side of a write: which token leaves the wallet, to whom, how much."""

    label: str
    token: str
    symbol: str
    decimals: int
    amount_text: str
    units: int
    spender: Optional[str] = None
    policy: ApprovalPolicy = ApprovalPolicy.EXACT


def is_native(token: str) -> bool:
    return token.lower() == NATIVE_TOKEN.lower()


class TxSequencer:
    def __init__(
        self,
        w3: Web3,
        account,
        network: NetworkConfig,
        receipt_timeout: int = 180,
        gas_buffer: Decimal = DEFAULT_GAS_BUFFER,
    ):
        self.w3 = w3
        self.account = account
        self.address = account.address if account is not None else None
        self.network = network
        self.receipt_timeout = receipt_timeout
        self.gas_buffer = gas_buffer

    # Reads --------------------------------------------------------------
    def rpc(self, operation: str, fn: Callable[[], T]) -> T:
        """Run one RPC read, reporting any failure as ``RpcError``."""
        logger.debug("rpc: %s", operation)
        try:
            return fn()
        except RPC_FAILURES as exc:
            raise RpcError(operation, revert_reason(exc)) from exc

    def verify_network(self) -> int:
        chain_id = self.rpc("chainId read", lambda: self.w3.eth.chain_id)
        if chain_id != self.network.chain_id:
            raise RpcError(
                "chain id check",
                f"RPC {self.network.rpc_url} reports chainId {chain_id}, "
                f"expected {self.network.chain_id} for {self.network.name}",
            )
        return chain_id

    def token(self, address: str) -> Contract:
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=ERC20_ABI)

    def vault(self, address: str) -> Contract:
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=ERC4626_ABI)

    def decimals(self, token: str) -> int:
        if is_native(token):
            return NATIVE_DECIMALS
        raw = self.rpc(f"decimals() of {token}", lambda: self.token(token).functions.decimals().call())
        try:
            return safe_decimals(raw)
        except ValueError as exc:
            raise RpcError(f"decimals() of {token}", str(exc)) from exc

    def symbol(self, token: str) -> str:
        if is_native(token):
            return "ETH"
        return self.rpc(f"symbol() of {token}", lambda: self.token(token).functions.symbol().call())

    def balance_of(self, token: str, owner: Optional[str] = None) -> int:
        owner = owner or self.address
        if is_native(token):
            return self.rpc("native balance read", lambda: self.w3.eth.get_balance(owner))
        return self.rpc(
            f"balanceOf() on {token}", lambda: self.token(token).functions.balanceOf(owner).call()
        )

    # Stages -------------------------------------------------------------
    def check_balance(self, intent: TransferIntent) -> int:
        """Stage 1: the wallet must already hold ``intent.units``."""
        cli_output.step("Checking balance...")
        balance = self.balance_of(intent.token)
        if balance < intent.units:
            raise InsufficientBalanceError(
                symbol=intent.symbol,
                available=format_units(balance, intent.decimals),
                required=intent.amount_text,
            )
        cli_output.ok("Sufficient balance")
        return balance

    def ensure_allowance(
        self,
        token: str,
        spender: str,
        required: int,
        policy: ApprovalPolicy = ApprovalPolicy.EXACT,
    ) -> Optional[TxOutcome]:
        """Stage 2: approve ``spender`` when the allowance is below ``required``.

        Returns the approval outcome, or None when no transaction was needed.
        """
        cli_output.step("Checking allowance...")
        contract = self.token(token)
        spender = Web3.to_checksum_address(spender)
        current = self.rpc(
            "allowance read", lambda: contract.functions.allowance(self.address, spender).call()
        )
        if current >= required:
            cli_output.ok("Sufficient allowance already exists")
            return None

        approve_amount = required * policy.multiplier
        cli_output.step("Approving token spending...")
        logger.info(
            "Approving %s units of %s for %s (policy %s)", approve_amount, token, spender, policy.name
        )
        outcome = self.execute("Approval", contract.functions.approve(spender, approve_amount))
        cli_output.ok("Approval confirmed")
        return outcome

    def simulate(self, label: str, call: Call) -> int:
        """Stage 3: dry-run the call; a revert aborts before anything is signed."""
        try:
            if isinstance(call, dict):
                probe = {k: call[k] for k in ("from", "to", "data", "value") if k in call}
                probe.setdefault("from", self.address)
                return self.w3.eth.estimate_gas(probe)
            return call.estimate_gas({"from": self.address})
        except ContractLogicError as exc:
            raise SimulationError(label, revert_reason(exc)) from exc
        except CONNECTION_FAILURES as exc:
            raise RpcError(f"{label} gas estimation", revert_reason(exc)) from exc
        except (Web3Exception, ValueError) as exc:
            raise SimulationError(label, revert_reason(exc)) from exc

    def submit(self, label: str, tx: Dict[str, object]) -> TxOutcome:
        """Stage 4: sign, send and block until one confirmation."""
        signed = self.account.sign_transaction(tx)
        raw_tx = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction", None)
        if raw_tx is None:
            raise RpcError(f"{label} signing", "SignedTransaction missing raw bytes")

        tx_hash = Web3.to_hex(
            self.rpc(f"{label} submission", lambda: self.w3.eth.send_raw_transaction(raw_tx))
        )
        cli_output.field("Transaction sent", tx_hash)
        logger.info("%s sent: %s", label, tx_hash)

        receipt = self.rpc(
            f"{label} confirmation",
            lambda: self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout),
        )
        if receipt["status"] != 1:
            raise TransactionRevertedError(label, tx_hash, receipt.get("blockNumber"))

        outcome = TxOutcome(
            label=label,
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
        )
        logger.info("%s confirmed in block %s (gas %s)", label, outcome.block_number, outcome.gas_used)
        return outcome

    def execute(self, label: str, call: Call, gas_limit: Optional[int] = None) -> TxOutcome:
        """Estimate, then submit one call. ``gas_limit`` overrides the buffered estimate."""
        estimate = self.simulate(label, call)
        gas = gas_limit if gas_limit else self._buffered(estimate)
        params = self._tx_params(label, gas)

        if isinstance(call, dict):
            tx = dict(params)
            tx.update({k: v for k, v in call.items() if k not in ("gas", "from")})
        else:
            tx = self.rpc(f"{label} build", lambda: call.build_transaction(params))
        return self.submit(label, tx)

    def run_transfer(self, intent: TransferIntent, build_call: Callable[[], Call]) -> TxOutcome:
        """Balance check, optional approval, then the primary call.

        ``build_call`` is invoked only after the approval stage so it can
        reference state (allowances) the earlier stages established.
        """
        self.check_balance(intent)
        if intent.spender:
            self.ensure_allowance(intent.token, intent.spender, intent.units, intent.policy)
        cli_output.step(f"Executing {intent.label.lower()}...")
        return self.execute(intent.label, build_call())

    def read_back(self, label: str, fn: Callable[[], T]) -> Optional[T]:
        """Stage 5: post-confirmation read; failures are reported, never raised."""
        try:
            return fn()
        except (StewardError, *RPC_FAILURES) as exc:
            logger.warning("Post-transaction read of %s failed: %s", label, exc)
            cli_output.warn(f"Could not read {label}: {exc}")
            return None

    # Helpers ------------------------------------------------------------
    def _buffered(self, estimate: int) -> int:
        return int(Decimal(int(estimate)) * self.gas_buffer)

    def _tx_params(self, label: str, gas: int) -> Dict[str, object]:
        nonce = self.rpc(
            f"{label} nonce read", lambda: self.w3.eth.get_transaction_count(self.address, "pending")
        )
        gas_price = self.rpc(f"{label} gas price read", lambda: self.w3.eth.gas_price)
        return {
            "chainId": self.network.chain_id,
            "from": self.address,
            "nonce": nonce,
            "gas": int(gas),
            "gasPrice": int(gas_price),
        }
