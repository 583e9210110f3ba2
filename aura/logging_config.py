"""
Structured logging configuration using structlog wrapping stdlib.

Console output by default; JSON lines when CAE_LOG_FORMAT=json. Records from
uvicorn and other stdlib loggers get the same timestamp and level fields.

Usage:
    from aura.logging_config import setup_logging
    setup_logging()
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from .config import config


def setup_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    if level is None:
        level = config.log_level

    if json_output is None:
        json_output = config.log_format.lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        # tracebacks become a plain "exception" string field in JSON lines
        renderers: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # uvicorn and other stdlib loggers go through the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *renderers,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # uvicorn's access log is noisy at INFO with the background refresh loop
    logging.getLogger("uvicorn.access").setLevel(max(numeric_level, logging.WARNING))
