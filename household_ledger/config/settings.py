"""
Configuration Management for Household Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Business constants that users may want to tune (statement minimum-due rate,
split tolerance, fallback household) live next to the infrastructure
settings so every knob is visible in one place.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger engine behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )

    default_currency: str = Field(
        default="INR",
        min_length=3,
        max_length=3,
        description="ISO currency code used when a record does not carry one"
    )
    locale: str = Field(
        default="en_IN",
        description="Locale used for currency grouping (en_IN gives lakh/crore)"
    )
    split_tolerance: float = Field(
        default=0.01,
        ge=0.0,
        le=1.0,
        description="Allowed difference between a split transaction and its parts"
    )
    fallback_household_id: str = Field(
        default="household_1",
        description="Sentinel household used only in degraded/offline startup"
    )
    allow_fallback_household: bool = Field(
        default=False,
        description="Return the sentinel household instead of failing when no session is active"
    )

    @field_validator("default_currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class CreditSettings(BaseSettings):
    """Credit facility statement configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CREDIT_",
        extra="ignore"
    )

    minimum_due_rate: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        description="Fraction of the closing balance due as the minimum payment"
    )
    statement_due_days: int = Field(
        default=20,
        ge=0,
        le=60,
        description="Days between cycle end and payment due date"
    )


class StorageSettings(BaseSettings):
    """Document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    backend: Literal["memory", "json"] = Field(
        default="memory",
        description="Which document store implementation to use"
    )
    data_dir: Path = Field(
        default=Path(".ledger-data"),
        description="Directory holding one JSON file per collection (json backend)"
    )


class SnapshotSettings(BaseSettings):
    """Shared snapshot publishing configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOT_",
        extra="ignore"
    )

    interval_seconds: int = Field(
        default=900,
        ge=1,
        description="How often the periodic publisher refreshes the snapshot"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    log_level: str = Field(
        default="INFO",
        description="Minimum log level for the structured logger"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def credit(self) -> CreditSettings:
        return CreditSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def snapshot(self) -> SnapshotSettings:
        return SnapshotSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus `<name>_error`
    entries describing failures. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("ledger", "credit", "storage", "snapshot", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
