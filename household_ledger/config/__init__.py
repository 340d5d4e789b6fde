"""Configuration package."""

from household_ledger.config.settings import (
    AppSettings,
    CreditSettings,
    LedgerSettings,
    Settings,
    SnapshotSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CreditSettings",
    "LedgerSettings",
    "Settings",
    "SnapshotSettings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
