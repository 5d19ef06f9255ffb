"""
ICS Feed Adapter.

Fetches a calendar feed over HTTP with requests and decodes it with the ICS
parser. No retries: a failed fetch fails the run and the scheduler tries
again on its next invocation.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo

import requests

from src.ingestion.exceptions import FeedParseError
from src.ingestion.parsers.ics_parser import ICSParser

from .base_adapter import AdapterConfig, BaseSourceAdapter, FetchResult, SourceType

DEFAULT_USER_AGENT = "event-feed-reconciler/1.0 (+calendar sync)"


@dataclass
class ICSAdapterConfig(AdapterConfig):
    """Configuration for calendar feed adapters."""

    feed_url: str = ""
    timezone: tzinfo = ZoneInfo("Europe/Paris")
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        """Set source type to ICS."""
        self.source_type = SourceType.ICS


class ICSFeedAdapter(BaseSourceAdapter):
    """
    Adapter for ICS calendar feeds.

    One GET per fetch, reusing a requests.Session for the adapter's lifetime.
    """

    def __init__(
        self,
        config: ICSAdapterConfig,
        session: requests.Session | None = None,
        parser: ICSParser | None = None,
    ):
        """
        Initialize the ICS adapter.

        Args:
            config: ICSAdapterConfig with the feed URL
            session: Optional pre-built session (tests inject a mock)
            parser: Optional parser; defaults to ICSParser in the configured zone
        """
        super().__init__(config)
        self._session = session
        self._owns_session = session is None
        self.parser = parser or ICSParser(timezone=config.timezone)

    @property
    def ics_config(self) -> ICSAdapterConfig:
        """Get typed config."""
        return self.config  # type: ignore[return-value]

    def _validate_config(self) -> None:
        """Validate ICS configuration."""
        if not self.ics_config.feed_url:
            raise ValueError("ICS adapter requires feed_url")

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(
                {
                    "User-Agent": self.ics_config.user_agent,
                    "Accept": "text/calendar, text/plain;q=0.9, */*;q=0.8",
                }
            )
        return self._session

    def fetch(self, **kwargs) -> FetchResult:
        """
        Fetch and parse the feed.

        Returns:
            FetchResult with parsed entries; on network errors, non-2xx
            responses or a payload that is not a calendar, a failed result
            carrying the error
        """
        fetch_started = datetime.now(UTC)
        url = self.ics_config.feed_url
        self.logger.info(f"Fetching calendar feed: {url}")

        try:
            response = self._get_session().get(url, timeout=self.config.request_timeout)
        except requests.RequestException as e:
            self.logger.error(f"Feed fetch failed: {e}")
            return self._failed(fetch_started, f"Feed request failed: {e}")

        if not response.ok:
            self.logger.error(f"Feed fetch failed with status {response.status_code}")
            return self._failed(
                fetch_started,
                f"Feed fetch failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            entries, skipped = self.parser.parse(response.content)
        except FeedParseError as e:
            self.logger.error(f"Feed is not a calendar: {e}")
            return self._failed(fetch_started, str(e), status_code=response.status_code)

        self.logger.info(f"Parsed {len(entries)} feed entries ({skipped} skipped)")
        return FetchResult(
            success=True,
            source_type=SourceType.ICS,
            entries=entries,
            skipped=skipped,
            status_code=response.status_code,
            metadata={"bytes": len(response.content)},
            fetch_started_at=fetch_started,
            fetch_ended_at=datetime.now(UTC),
        )

    def _failed(
        self, started: datetime, error: str, status_code: int | None = None
    ) -> FetchResult:
        return FetchResult(
            success=False,
            source_type=SourceType.ICS,
            errors=[error],
            status_code=status_code,
            fetch_started_at=started,
            fetch_ended_at=datetime.now(UTC),
        )

    def close(self) -> None:
        """Close the session if this adapter created it."""
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None
