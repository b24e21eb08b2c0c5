"""Logging configuration using structlog."""

import logging
import sys
from typing import Optional

import structlog

from walletflow.config import settings


def configure_logging(level: Optional[str] = None, debug: Optional[bool] = None) -> None:
    """Configure structlog for the CLI and library callers.

    Pretty console output in debug mode, JSON lines otherwise. Logs go to
    stderr so report output on stdout stays clean.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    use_console = settings.DEBUG if debug is None else debug

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
            if use_console
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # urllib3 / requests go through stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )
