"""
Structured Logging

DESIGN DECISION: Every component logs through structlog with an event
name plus key-value context, never with formatted prose. This gives:
1. Machine-readable logs (JSON renderer)
2. Grep-able event names (e.g. balance_adjustment_skipped)
3. One place to change processors for the whole package

Logging must never break the ledger: the functions here only configure
and hand out loggers, they do not raise on bad input.
"""

import logging
import sys
from typing import Optional

import structlog

from household_ledger.config import get_settings


_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure stdlib logging and structlog.

    Args:
        level: Minimum level. Defaults to the APP log_level setting.
    """
    global _configured

    level = (level or get_settings().app.log_level).upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )

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
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Cached loggers would ignore structlog.testing.capture_logs
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Return a logger bound to a component name, configuring on first use."""
    if not _configured:
        configure_logging()
    return structlog.get_logger(component).bind(component=component)
