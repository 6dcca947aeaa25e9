from __future__ import annotations

import logging

import structlog

from common.logging import configure_logging, get_logger


def test_get_logger_leaves_configuration_to_the_caller():
    structlog.reset_defaults()
    root_handlers = list(logging.getLogger().handlers)
    try:
        get_logger("mapconfig.model")
        assert not structlog.is_configured()
        assert logging.getLogger().handlers == root_handlers
    finally:
        configure_logging("DEBUG", fmt="console")


def test_configure_logging_level_and_format(monkeypatch):
    try:
        configure_logging("warning", fmt="json")
        assert logging.getLogger().level == logging.WARNING
        assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)

        monkeypatch.setenv("TILER_LOG_FORMAT", "console")
        monkeypatch.setenv("TILER_LOG_LEVEL", "error")
        configure_logging()
        assert logging.getLogger().level == logging.ERROR
        assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)
    finally:
        configure_logging("DEBUG", fmt="console")
