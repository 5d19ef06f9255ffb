"""
ICS Parser.

icalendar-based parser turning a calendar document into FeedEntry objects.
Recurrences are not expanded: each VEVENT in the document is one entry.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, tzinfo

from icalendar import Calendar

from src.ingestion.exceptions import FeedParseError
from src.schemas.event import FeedEntry

logger = logging.getLogger(__name__)

CANCELLED_STATUS = "CANCELLED"


class ICSParser:
    """
    Parser for calendar (ICS) documents.

    Entries without a start or a title, cancelled entries and entries whose
    properties cannot be decoded are skipped; the rest of the document is
    still returned.
    """

    def __init__(self, timezone: tzinfo):
        """
        Initialize the parser.

        Args:
            timezone: Zone applied to floating and all-day start times
        """
        self.timezone = timezone

    def parse(self, payload: bytes | str) -> tuple[list[FeedEntry], int]:
        """
        Parse an ICS document.

        Args:
            payload: Raw document body

        Returns:
            Tuple of (entries, number of skipped VEVENTs)

        Raises:
            FeedParseError: If the payload is not a calendar
        """
        if not payload:
            raise FeedParseError("Empty calendar payload")

        try:
            calendar = Calendar.from_ical(payload)
        except (ValueError, IndexError, KeyError) as e:
            raise FeedParseError(f"Invalid calendar payload: {e}") from e
        if getattr(calendar, "name", None) != "VCALENDAR":
            raise FeedParseError("Payload is not a VCALENDAR document")

        entries: list[FeedEntry] = []
        skipped = 0
        for component in calendar.walk("VEVENT"):
            try:
                entry = self.parse_event(component)
            except (ValueError, TypeError, KeyError, OverflowError) as e:
                logger.warning(f"Skipping unreadable feed entry {component.get('UID')!r}: {e}")
                skipped += 1
                continue
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)

        return entries, skipped

    def parse_event(self, component) -> FeedEntry | None:
        """
        Convert one VEVENT into a FeedEntry.

        Returns:
            FeedEntry, or None when the event has no start, no title, or is
            cancelled
        """
        uid = str(component.get("UID", "") or "")
        status = str(component.get("STATUS", "") or "").upper()
        if status == CANCELLED_STATUS:
            logger.debug(f"Skipping cancelled feed entry {uid!r}")
            return None

        title = str(component.get("SUMMARY", "") or "").strip()
        if not title:
            logger.debug(f"Skipping feed entry {uid!r} without title")
            return None

        if component.get("DTSTART") is None:
            logger.debug(f"Skipping feed entry {uid!r} without start")
            return None
        start = self._to_datetime(component.decoded("DTSTART"))

        return FeedEntry(
            uid=uid,
            title=title,
            start=start,
            location=str(component.get("LOCATION", "") or ""),
            url=str(component.get("URL", "") or ""),
            description=str(component.get("DESCRIPTION", "") or ""),
        )

    def _to_datetime(self, value: date | datetime) -> datetime:
        """Aware datetime in the configured zone; all-day starts become local midnight."""
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=self.timezone)
            return value.astimezone(self.timezone)
        if isinstance(value, date):
            return datetime.combine(value, time(0, 0), tzinfo=self.timezone)
        raise TypeError(f"Unsupported DTSTART value: {value!r}")
