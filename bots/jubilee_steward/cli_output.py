#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Console output and top-level error handling for the steward commands."""

from __future__ import annotations

import os
import sys
import traceback
from typing import Callable, Optional

import requests
from web3.exceptions import Web3Exception

from input_validation import USAGE_EXAMPLES
from logging_config import get_logger, set_log_level
from tx_errors import (
    ExternalServiceError,
    InsufficientBalanceError,
    RpcError,
    SimulationError,
    StewardError,
    ValidationError,
    failure_hint,
    revert_reason,
)

logger = get_logger(__name__)

RULE_WIDTH = 60

SEVERITY_ICON = {
    "ok": "✓",
    "warn": "⚠",
    "error": "❌",
    "pending": "⏳",
}


def banner(title: str, char: str = "=") -> None:
    print(f"\n{title}")
    print(char * RULE_WIDTH)


def rule(char: str = "=") -> None:
    print(char * RULE_WIDTH)


def field(label: str, value: object, indent: str = "") -> None:
    print(f"{indent}{label}: {value}")


def step(message: str) -> None:
    print(f"\n{SEVERITY_ICON['pending']} {message}")


def ok(message: str) -> None:
    print(f"{SEVERITY_ICON['ok']} {message}")


def warn(message: str) -> None:
    print(f"{SEVERITY_ICON['warn']} {message}")


def fail(message: str) -> None:
    print(f"{SEVERITY_ICON['error']} {message}", file=sys.stderr)


def display_tx_result(outcome, action: str) -> None:
    print(f"\n{SEVERITY_ICON['ok']} {action} successful!")
    field("Transaction Hash", outcome.tx_hash)
    field("Block Number", outcome.block_number)
    field("Gas Used", outcome.gas_used)


def report_validation_error(error: ValidationError, command: str) -> None:
    fail(f"Invalid input: {error.message}")
    usage = USAGE_EXAMPLES.get(command)
    if usage:
        print(f"\nUsage: {usage}\n", file=sys.stderr)


def handle_error(error: BaseException, context: str = "Operation") -> None:
    """Print a user-facing description of a failed operation."""
    fail(f"{context} failed:")

    if isinstance(error, InsufficientBalanceError):
        print(f"   {error.message}", file=sys.stderr)
    elif isinstance(error, SimulationError):
        print(f"   {error.message}", file=sys.stderr)
    elif isinstance(error, (RpcError, ExternalServiceError, StewardError)):
        print(f"   Error: {error.message}", file=sys.stderr)
        hint = failure_hint(error.message)
        if hint:
            print(f"   {hint}", file=sys.stderr)
    else:
        reason = revert_reason(error)
        print(f"   Error: {reason}", file=sys.stderr)
        hint = failure_hint(reason)
        if hint:
            print(f"   {hint}", file=sys.stderr)

    if os.getenv("DEBUG"):
        print("\nFull error:", file=sys.stderr)
        traceback.print_exception(type(error), error, error.__traceback__, file=sys.stderr)


def run_command(command: str, context: str, action: Callable[[], Optional[object]]) -> int:
    """Run one command and turn its outcome into a process exit code."""
    if os.getenv("DEBUG"):
        set_log_level("DEBUG")
    try:
        action()
    except ValidationError as exc:
        report_validation_error(exc, command)
        return 1
    except StewardError as exc:
        logger.debug("%s failed", context, exc_info=True)
        handle_error(exc, context)
        return 1
    except (Web3Exception, requests.RequestException, ValueError, OSError) as exc:
        logger.debug("%s failed outside a wrapped call", context, exc_info=True)
        handle_error(RpcError(context, revert_reason(exc)), context)
        return 1
    return 0
