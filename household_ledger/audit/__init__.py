"""Structured logging package."""

from household_ledger.audit.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
