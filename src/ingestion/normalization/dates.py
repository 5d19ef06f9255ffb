"""
Timestamp parsing for start times typed by hand or emitted by the feed.

ISO 8601 is the canonical form; a few day-first spreadsheet layouts are
accepted as well. Values without an offset are read in the configured zone.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any

from src.ingestion.normalization.text import strip_lock

_FALLBACK_FORMATS: tuple[str, ...] = (
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y %Hh%M",
    "%d/%m/%Y",
    "%Y/%m/%d %H:%M",
    "%Y-%m-%d %Hh%M",
)

MINUTE_FORMAT = "%Y-%m-%dT%H:%M"


def parse_timestamp(value: Any, tz: tzinfo) -> datetime | None:
    """Timezone-aware datetime for a start-time cell, or None when unparseable."""
    if isinstance(value, datetime):
        parsed: datetime | None = value
    else:
        text = strip_lock(value)
        if not text:
            return None
        parsed = None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            for fmt in _FALLBACK_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed


def minute_key(value: Any, tz: tzinfo) -> str:
    """
    Start time at minute resolution in the configured zone (``YYYY-MM-DDTHH:MM``).

    Seconds are dropped rather than rounded so feed jitter within a minute
    maps onto one key. Unparseable values fall back to their first 16
    characters, as do starts that cannot be shifted into the zone (a
    ``9999-12-31T23:30-05:00`` lands past year 9999).
    """
    parsed = parse_timestamp(value, tz)
    if parsed is None:
        return strip_lock(value)[:16]
    try:
        return parsed.astimezone(tz).strftime(MINUTE_FORMAT)
    except OverflowError:
        return strip_lock(value)[:16]


def format_timestamp(value: datetime, tz: tzinfo) -> str:
    """Stored form of a start time: ISO 8601 in the configured zone, to the second."""
    return value.astimezone(tz).isoformat(timespec="seconds")
