#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Error family and revert decoding for steward operations.

Every failure an operation can report is one of the ``StewardError``
subclasses below. They carry structured fields; ``str(err)`` is derived
from those fields so callers never have to parse messages.
"""

from __future__ import annotations

from typing import Optional


class StewardError(Exception):
    """Base class for every reported failure."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StewardError):
    """Malformed or out-of-range input, raised before any network call."""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.value = value


class WalletError(StewardError):
    """Wallet credential file missing or unusable."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class InsufficientBalanceError(StewardError):
    """Signer holds less than the operation needs."""

    def __init__(self, symbol: str, available: str, required: str, subject: Optional[str] = None):
        self.symbol = symbol
        self.available = available
        self.required = required
        subject = subject or f"Insufficient {symbol} balance"
        super().__init__(
            f"{subject}. Available: {available} {symbol}, Required: {required} {symbol}"
        )


class RpcError(StewardError):
    """Connectivity or node-side failure on a read or a write."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class SimulationError(StewardError):
    """Gas estimation reverted; the transaction was never sent."""

    def __init__(self, label: str, reason: str):
        self.label = label
        self.reason = reason
        super().__init__(
            f"{label}: transaction would likely fail. Please check token balances "
            f"and approvals. Details: {reason}"
        )


class TransactionRevertedError(StewardError):
    """Transaction was mined but its receipt reports failure."""

    def __init__(self, label: str, tx_hash: str, block_number: Optional[int] = None):
        self.label = label
        self.tx_hash = tx_hash
        self.block_number = block_number
        super().__init__(f"{label} reverted on-chain (tx {tx_hash}, block {block_number})")


class ExternalServiceError(StewardError):
    """Swap quoting service could not be used."""

    def __init__(self, message: str, service: str = "0x"):
        super().__init__(message)
        self.service = service


class QuoteRejectedError(ExternalServiceError):
    """The quoting service answered but refused the request."""

    def __init__(self, reason: str, status_code: Optional[int] = None, service: str = "0x"):
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{service} API Error: {reason}", service=service)


class QuoteTimeoutError(ExternalServiceError):
    """The quoting service did not answer within the timeout."""

    def __init__(self, timeout: float, service: str = "0x"):
        self.timeout = timeout
        super().__init__(
            f"{service} API request timed out after {timeout:g}s. Please try again.",
            service=service,
        )


PANIC_REASONS = {
    0x00: "Generic panic",
    0x01: "Assertion failed",
    0x11: "Arithmetic overflow/underflow",
    0x12: "Division by zero",
    0x21: "Invalid enum value",
    0x22: "Invalid storage access",
    0x31: "Pop from empty array",
    0x32: "Array index out of bounds",
    0x41: "Out of memory",
    0x51: "Invalid internal function",
}


def decode_revert_reason(error_data: str) -> Optional[str]:
    """
    Decode revert reason from error data.

    Args:
        error_data: Hex-encoded revert payload

    Returns:
        Decoded revert reason string or None
    """
    if not error_data or not isinstance(error_data, str):
        return None

    data = error_data[2:] if error_data.startswith("0x") else error_data

    # Error(string): selector, offset word, length word, utf-8 bytes
    if data.startswith("08c379a0"):
        length_start = 8 + 64
        length_end = length_start + 64
        if len(data) < length_end:
            return None
        try:
            length = int(data[length_start:length_end], 16)
            string_hex = data[length_end:length_end + length * 2]
            if len(string_hex) < length * 2:
                return None
            return bytes.fromhex(string_hex).decode("utf-8", errors="ignore")
        except ValueError:
            return None

    # Panic(uint256)
    if data.startswith("4e487b71"):
        try:
            panic_code = int(data[8:72], 16)
        except ValueError:
            return None
        return PANIC_REASONS.get(panic_code, f"Panic code: 0x{panic_code:02x}")

    return None


def revert_reason(exc: BaseException) -> str:
    """Best human-readable reason carried by a web3/node exception."""
    data = getattr(exc, "data", None)
    if isinstance(data, dict):
        data = data.get("data")
    decoded = decode_revert_reason(data) if isinstance(data, str) else None
    if decoded:
        return decoded

    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message

    # web3 v6 surfaces node errors as ValueError({"code": ..., "message": ...})
    if exc.args and isinstance(exc.args[0], dict):
        payload = exc.args[0]
        inner = payload.get("data")
        decoded = decode_revert_reason(inner) if isinstance(inner, str) else None
        return decoded or str(payload.get("message") or payload)

    return str(exc) or type(exc).__name__


def failure_hint(error_message: str) -> Optional[str]:
    """Operator hint for common node-side failure messages."""
    message_lower = error_message.lower()

    if "insufficient funds" in message_lower:
        return "Insufficient ETH for gas fees"

    if any(phrase in message_lower for phrase in (
        "nonce too low",
        "nonce has already been used",
        "replacement transaction underpriced",
    )):
        return (
            "Nonce conflict: another transaction from this signer may be pending "
            "(concurrent runs against one wallet are not coordinated)"
        )

    if "execution reverted" in message_lower:
        return "Transaction would likely fail. Check balances and allowances."

    if "timeout" in message_lower or "timed out" in message_lower:
        return "The node did not answer in time; check the RPC endpoint"

    return None
