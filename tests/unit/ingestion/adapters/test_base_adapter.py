"""
Unit tests for the base_adapter module.

Tests for BaseSourceAdapter, SourceType, FetchResult, and AdapterConfig.
"""

from dataclasses import fields
from datetime import UTC, datetime, timedelta

import pytest

from src.ingestion.adapters.base_adapter import (
    AdapterConfig,
    BaseSourceAdapter,
    FetchResult,
    SourceType,
)

# =============================================================================
# TEST CLASSES
# =============================================================================


class TestSourceType:
    """Tests for SourceType enum."""

    def test_enum_values(self):
        assert SourceType.ICS == "ics"
        assert len(SourceType) == 1


class TestFetchResult:
    """Tests for FetchResult dataclass."""

    def test_default_values(self):
        """Should have sensible defaults."""
        result = FetchResult(success=True, source_type=SourceType.ICS)
        assert result.entries == []
        assert result.skipped == 0
        assert result.errors == []
        assert result.status_code is None
        assert result.metadata == {}

    def test_duration_seconds(self):
        """Should calculate duration correctly."""
        start = datetime.now(UTC)
        result = FetchResult(
            success=True,
            source_type=SourceType.ICS,
            fetch_started_at=start,
            fetch_ended_at=start + timedelta(seconds=5),
        )
        assert result.duration_seconds == 5.0

    def test_duration_seconds_no_timestamps(self):
        """Should return 0 when timestamps not set."""
        assert FetchResult(success=True, source_type=SourceType.ICS).duration_seconds == 0.0


class TestAdapterConfig:
    """Tests for AdapterConfig dataclass."""

    def test_default_values(self):
        config = AdapterConfig(source_id="test", source_type=SourceType.ICS)
        assert config.request_timeout == 30
        assert [f.name for f in fields(config)] == ["source_id", "source_type", "request_timeout"]


class TestBaseSourceAdapter:
    """Tests for BaseSourceAdapter abstract class."""

    def test_cannot_instantiate_abstract(self):
        config = AdapterConfig(source_id="test", source_type=SourceType.ICS)
        with pytest.raises(TypeError):
            BaseSourceAdapter(config)

    def test_context_manager_closes(self):
        """Should close the adapter on exit."""

        class ConcreteAdapter(BaseSourceAdapter):
            closed = False

            def fetch(self, **kwargs):
                return FetchResult(success=True, source_type=self.source_type)

            def _validate_config(self):
                pass

            def close(self):
                self.closed = True

        adapter = ConcreteAdapter(AdapterConfig(source_id="test", source_type=SourceType.ICS))
        with adapter as a:
            assert a.source_id == "test"
            assert a.source_type == SourceType.ICS
        assert adapter.closed is True
