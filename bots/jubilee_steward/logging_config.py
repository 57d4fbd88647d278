#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Diagnostic logging for the Jubilee steward scripts.

Progress meant for the operator is printed by ``cli_output``. The loggers set
up here carry the diagnostic stream to stderr (and to ``LOG_PATH`` when set):
RPC reads, submitted transactions, best-effort read-back failures. The level
comes from ``LOG_LEVEL`` and defaults to WARNING so the two streams do not
repeat each other.

    from logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Deposit confirmed: %s", tx_hash)
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def _env_level() -> str:
    level = os.getenv("LOG_LEVEL", "WARNING").upper()
    return level if level in VALID_LOG_LEVELS else "WARNING"


def _handlers(log_file: Optional[Path]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is None:
        return handlers
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    except OSError as e:
        print(f"Warning: Failed to create log file {log_file}: {e}", file=sys.stderr)
    return handlers


def configure_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """Attach the stderr (and optional file) handlers to the root logger once.

    Args:
        level: Log level name; ``LOG_LEVEL`` when omitted
        log_file: Optional path to an additional log file
    """
    global _configured

    if _configured:
        return

    log_level = getattr(logging, (level or _env_level()).upper(), logging.WARNING)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=TIMESTAMP_FORMAT)
    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in _handlers(log_file):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, configuring the root logger on first use."""
    if not _configured:
        log_path = os.getenv("LOG_PATH")
        configure_logging(log_file=Path(log_path) if log_path else None)
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """Change the log level for the root logger and its handlers."""
    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        print(f"Warning: Invalid log level '{level}'", file=sys.stderr)
        return
    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers:
        handler.setLevel(log_level)
