"""Structured logging setup.

Every module obtains its logger through ``get_logger`` and logs events as
short messages with key/value context:

    logger = get_logger("ledger_cache.query_cache")
    logger.debug("Fetch started", key=str(key))
"""

import logging
import sys

import structlog

from ledger_cache.config import settings


def configure_logging(level: str | None = None, json: bool | None = None) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Log level name. Defaults to settings.log_level.
        json: Render JSON lines instead of console output. Defaults to settings.log_json.
    """
    level = (level or settings.log_level).upper()
    json = settings.log_json if json is None else json

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
