from __future__ import annotations

import logging
import sys

import structlog

from common.config import log_format, log_level


def _renderer(fmt: str):
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer()


def configure_logging(level: str | None = None, *, fmt: str | None = None) -> None:
    """
    Set up structlog on top of stdlib logging.

    Call once from the embedding application (or the test suite). Library modules only
    fetch loggers and never configure anything themselves.
    """
    logging_level = getattr(logging, (level or log_level()).upper(), logging.INFO)
    logging.basicConfig(level=logging_level, format="%(message)s", stream=sys.stderr)
    logging.getLogger().setLevel(logging_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            _renderer(fmt or log_format()),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    # Lazy proxy: binds to whatever configuration is active at first use.
    return structlog.get_logger(name)
