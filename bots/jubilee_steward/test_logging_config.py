#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging

import pytest

import logging_config


@pytest.fixture
def root_logger(monkeypatch):
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    root.handlers = []
    monkeypatch.setattr(logging_config, "_configured", False)
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def test_defaults_to_warning(root_logger, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    logging_config.configure_logging()
    assert root_logger.level == logging.WARNING
    assert [h for h in root_logger.handlers if type(h) is logging.StreamHandler]
    assert not [h for h in root_logger.handlers if isinstance(h, logging.FileHandler)]


def test_log_file_gets_its_own_handler(root_logger, tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "info")
    log_file = tmp_path / "logs" / "steward.log"

    logging_config.configure_logging(log_file=log_file)
    logging_config.get_logger("steward").info("deposit confirmed")

    assert root_logger.level == logging.INFO
    assert "deposit confirmed" in log_file.read_text(encoding="utf-8")


def test_set_log_level(root_logger, capsys):
    logging_config.configure_logging(level="WARNING")

    logging_config.set_log_level("debug")
    assert root_logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in root_logger.handlers)

    logging_config.set_log_level("loud")
    assert root_logger.level == logging.DEBUG
    assert "Invalid log level 'loud'" in capsys.readouterr().err
