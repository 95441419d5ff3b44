"""
Logging setup for the LLM gateway.

Modules log through ``logging.getLogger(__name__)`` and attach context
with ``extra={...}``.  :func:`setup_logging` installs a single stdout
handler on the ``llm_gateway`` logger whose structlog
``ProcessorFormatter`` renders those records either as one JSON object
per line or as ``key=value`` text.

Credentials and message content must never be passed in ``extra``.
"""

import logging
import sys
from typing import Optional

import structlog

from llm_gateway.config import Settings, get_settings

ROOT_LOGGER_NAME = "llm_gateway"


def build_formatter(fmt: str = "json") -> structlog.stdlib.ProcessorFormatter:
    """Return a formatter for stdlib records.

    ``extra={...}`` fields become top-level keys next to ``timestamp``,
    ``level``, ``logger`` and ``event``.
    """
    if fmt.lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.processors.KeyValueRenderer(
            key_order=["timestamp", "level", "logger", "event"]
        )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.ExtraAdder(),
            structlog.processors.format_exc_info,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the ``llm_gateway`` logger from ``settings.logging``.

    Safe to call more than once: the previously installed handler is
    replaced rather than duplicated.

    Args:
        settings: Settings to read; defaults to :func:`get_settings`.

    Returns:
        The configured package logger.
    """
    settings = settings or get_settings()
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    level = getattr(logging, settings.logging.level.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(settings.logging.format))
    handler.set_name(ROOT_LOGGER_NAME)

    for existing in list(logger.handlers):
        if existing.get_name() == ROOT_LOGGER_NAME:
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
