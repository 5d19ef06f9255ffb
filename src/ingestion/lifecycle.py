"""
Lifecycle filter: drop events whose grace period after start has passed.

The filter only includes or excludes records; it never modifies them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta, tzinfo

from src.ingestion.normalization.dates import parse_timestamp
from src.schemas.event import EventRecord

logger = logging.getLogger(__name__)

DEFAULT_GRACE_HOURS = 24.0

# Deadline of starts so late that start + grace is not representable
END_OF_TIME = datetime.max.replace(tzinfo=UTC)


def expires_at(record: EventRecord, grace_hours: float, tz: tzinfo) -> datetime | None:
    """
    Moment the record stops being listed, or None when its start is unparseable.

    A start within ``grace_hours`` of the largest representable date (a
    ``9999-12-31`` typo, say) never expires: END_OF_TIME is returned.
    """
    start = parse_timestamp(record.start_time, tz)
    if start is None:
        return None
    try:
        return start + timedelta(hours=grace_hours)
    except OverflowError:
        logger.warning(f"Start time {record.start_time!r} of {record.title!r} is out of range")
        return END_OF_TIME


def is_live(
    record: EventRecord,
    now: datetime,
    grace_hours: float = DEFAULT_GRACE_HOURS,
    tz: tzinfo | None = None,
) -> bool:
    """
    Whether the record is still listed at ``now``.

    Args:
        record: Record to check
        now: Timezone-aware reference time
        grace_hours: How long an event stays listed after it starts
        tz: Zone for start times without an offset (defaults to now's zone)

    Returns:
        True iff the start time parses and ``now < start + grace_hours``
    """
    zone = tz or now.tzinfo
    if zone is None:
        raise ValueError("now must be timezone-aware")
    deadline = expires_at(record, grace_hours, zone)
    if deadline is None:
        return False
    return now < deadline


def filter_live(
    records: Iterable[EventRecord],
    now: datetime,
    grace_hours: float = DEFAULT_GRACE_HOURS,
    tz: tzinfo | None = None,
) -> tuple[list[EventRecord], list[EventRecord]]:
    """
    Split records into (live, expired).

    Records with an unparseable start time land in ``expired``.
    """
    live: list[EventRecord] = []
    expired: list[EventRecord] = []
    for record in records:
        if is_live(record, now, grace_hours, tz):
            live.append(record)
        else:
            expired.append(record)
    return live, expired
