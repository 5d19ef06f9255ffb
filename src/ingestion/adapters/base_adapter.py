"""
Base Source Adapter.

Abstract base class defining the interface for feed adapters. Adapters only
retrieve and decode a source; reconciliation happens in the pipeline.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from src.schemas.event import FeedEntry


class SourceType(str, Enum):
    """Type of data source."""

    ICS = "ics"


@dataclass
class FetchResult:
    """
    Result of a feed fetch.

    ``entries`` holds the decoded feed entries; ``skipped`` counts entries
    that were present but could not be decoded.
    """

    success: bool
    source_type: SourceType
    entries: list[FeedEntry] = field(default_factory=list)
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    status_code: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    fetch_started_at: datetime | None = None
    fetch_ended_at: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate fetch duration."""
        if self.fetch_started_at and self.fetch_ended_at:
            return (self.fetch_ended_at - self.fetch_started_at).total_seconds()
        return 0.0


@dataclass
class AdapterConfig:
    """
    Base configuration for source adapters.

    Extended by specific adapter types.
    """

    source_id: str
    source_type: SourceType
    request_timeout: int = 30


class BaseSourceAdapter(ABC):
    """
    Abstract base class for source adapters.

    Subclasses must implement:
        - fetch(): Retrieve and decode the source
        - _validate_config(): Validate adapter-specific configuration
    """

    def __init__(self, config: AdapterConfig):
        """
        Initialize the adapter.

        Args:
            config: AdapterConfig with source-specific settings
        """
        self.config = config
        self.logger = logging.getLogger(f"adapter.{config.source_id}")
        self._validate_config()

    @property
    def source_type(self) -> SourceType:
        """Get the source type."""
        return self.config.source_type

    @property
    def source_id(self) -> str:
        """Get the source identifier."""
        return self.config.source_id

    @abstractmethod
    def fetch(self, **kwargs) -> FetchResult:
        """
        Fetch and decode the source.

        Returns:
            FetchResult with decoded entries, or a failed result carrying the
            error messages
        """
        pass

    @abstractmethod
    def _validate_config(self) -> None:
        """
        Validate adapter-specific configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        pass

    def close(self) -> None:
        """Release any resources held by the adapter."""
        pass

    def __enter__(self) -> "BaseSourceAdapter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
