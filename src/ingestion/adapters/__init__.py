"""
Source Adapters for Event Ingestion.

Adapters provide a unified interface for fetching feeds:
- ICS calendar feeds over HTTP

Usage:
    from src.ingestion.adapters import ICSFeedAdapter, ICSAdapterConfig, SourceType

    config = ICSAdapterConfig(source_id="gcal", source_type=SourceType.ICS, feed_url=url)
    with ICSFeedAdapter(config) as adapter:
        result = adapter.fetch()
"""

from .base_adapter import AdapterConfig, BaseSourceAdapter, FetchResult, SourceType
from .ics_adapter import ICSAdapterConfig, ICSFeedAdapter

__all__ = [
    "AdapterConfig",
    "BaseSourceAdapter",
    "SourceType",
    "FetchResult",
    "ICSAdapterConfig",
    "ICSFeedAdapter",
]
