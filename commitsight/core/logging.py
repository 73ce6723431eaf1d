"""Log setup for the CLI: structlog events rendered through stdlib handlers on stderr."""

from __future__ import annotations

import logging
import logging.config
import os
from typing import Any

import structlog

LEVEL_ENV = "COMMITSIGHT_LOG_LEVEL"
FORMAT_ENV = "COMMITSIGHT_LOG_FORMAT"

# Chatty third-party loggers capped at WARNING whatever the chosen level.
_QUIET_LOGGERS = ("httpx", "httpcore", "LiteLLM")


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def build_logging_config(level: str, log_format: str) -> dict[str, Any]:
    """Return the ``dictConfig`` mapping for *level* and *log_format*.

    Handlers write to stderr; stdout is reserved for the JSON report.
    """
    loggers: dict[str, dict[str, str]] = {"commitsight": {"level": level}}
    loggers.update({name: {"level": "WARNING"} for name in _QUIET_LOGGERS})
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": _pre_chain(),
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _renderer(log_format),
                ],
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "structlog",
            },
        },
        "root": {"handlers": ["stderr"], "level": level},
        "loggers": loggers,
    }


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    *level* wins over ``COMMITSIGHT_LOG_LEVEL`` (default ``INFO``).
    ``COMMITSIGHT_LOG_FORMAT`` picks ``console`` (default) or ``json``.
    """
    log_level = (level or os.environ.get(LEVEL_ENV, "INFO")).upper()
    log_format = os.environ.get(FORMAT_ENV, "console").lower()

    structlog.configure(
        processors=_pre_chain() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(build_logging_config(log_level, log_format))
