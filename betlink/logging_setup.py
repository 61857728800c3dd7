"""Structured logging configuration."""

from __future__ import annotations

import logging
import sys

import structlog

# Per-update chatter from these libraries drowns out the flow events.
QUIET_LOGGERS = ("aiogram.event", "aiohttp.access", "sqlalchemy.engine")


def build_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Route stdlib and structlog records through one renderer.

    ``log_format`` is ``json`` for deployments and ``console`` for local
    long-polling runs. Context bound with ``structlog.contextvars`` (the
    Telegram user handling the current update) is merged into every event.
    """

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        stream=sys.stdout,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            build_renderer(log_format),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
