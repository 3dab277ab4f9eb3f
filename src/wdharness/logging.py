"""Structured logging for wdharness.

Harness events go through structlog. selenium and urllib3 log through the
standard library; their records are kept at WARNING unless wire-level
debugging is asked for, since every WebDriver command is logged at DEBUG.
"""

import logging as stdlib_logging
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

WIRE_LOGGERS = ("selenium", "urllib3")


def add_log_level(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the log level to the event dict, spelling "warn" as "warning"."""
    event_dict["level"] = "warning" if method_name == "warn" else method_name
    return event_dict


def _renderer(json_output: bool) -> Any:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def quiet_selenium_loggers(level: str = "WARNING") -> None:
    """Set the stdlib level of selenium's and urllib3's loggers.

    Args:
        level: Minimum level let through for those loggers.
    """
    for name in WIRE_LOGGERS:
        stdlib_logging.getLogger(name).setLevel(level.upper())


def configure_logging(
    level: str = "WARNING",
    json_output: bool = False,
    wire_debug: bool = False,
) -> None:
    """Configure structlog for harness events and quiet the wire loggers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Render one JSON object per event instead of console lines.
        wire_debug: Let selenium's per-command DEBUG records through.
    """
    min_level = stdlib_logging.getLevelNamesMapping().get(level.upper(), stdlib_logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(json_output),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    quiet_selenium_loggers("DEBUG" if wire_debug else "WARNING")


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Return a structlog logger, usually bound to ``__name__``."""
    return structlog.get_logger(name)
