"""Centralized settings management for the event feed reconciler."""

from __future__ import annotations

from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.ingestion.deduplication import DeduplicationStrategy
from src.ingestion.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Run settings powered by pydantic-settings.

    Loads configuration from environment variables and an optional .env file
    in the working directory. Built once at process entry and passed down;
    nothing below the pipeline reads the environment.
    """

    # -------------------------------------------------------------------------
    # FEED
    # -------------------------------------------------------------------------
    FEED_URL: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("FEED_URL", "GCAL_ICS_URL"),
    )
    REQUEST_TIMEOUT: int = Field(default=30, gt=0)

    # -------------------------------------------------------------------------
    # RECONCILIATION
    # -------------------------------------------------------------------------
    TIMEZONE: str = "Europe/Paris"
    GRACE_HOURS: float = Field(default=24.0, ge=0)
    DEDUPLICATION_STRATEGY: DeduplicationStrategy = DeduplicationStrategy.FUZZY
    FUZZY_MAX_DISTANCE: int = Field(default=2, ge=0)

    # -------------------------------------------------------------------------
    # STORE & SITE
    # -------------------------------------------------------------------------
    STORE_PATH: Path = Path("events.csv")
    SITE_ORIGIN: str = ""

    # -------------------------------------------------------------------------
    # LOGGING
    # -------------------------------------------------------------------------
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Allow extra fields in .env but ignore them in the model
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("FEED_URL")
    @classmethod
    def _strip_feed_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("FEED_URL must not be blank")
        return value

    @field_validator("TIMEZONE")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone {value!r}") from e
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def tz(self) -> ZoneInfo:
        """Configured zone as a tzinfo."""
        return ZoneInfo(self.TIMEZONE)


def load_settings(**overrides) -> Settings:
    """
    Build settings from the environment, applying explicit overrides.

    Raises
    ------
    ConfigurationError
        When a required value is missing or a value is invalid.
    """
    clean = {k: v for k, v in overrides.items() if v is not None}
    try:
        return Settings(**clean)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e
