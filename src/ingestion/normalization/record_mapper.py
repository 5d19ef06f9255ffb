"""
Feed entry -> EventRecord mapping.

Applies description directives first and the cover/ticket heuristics second,
then canonicalizes links so the resulting record is stable across runs.
"""

import logging
import re
from datetime import datetime, tzinfo

from src.ingestion.normalization.dates import format_timestamp
from src.ingestion.normalization.directives import (
    Directive,
    extract_directives,
    find_cover_candidate,
    find_ticket_candidate,
)
from src.ingestion.normalization.text import lock, normalize_ws
from src.ingestion.normalization.urls import looks_like_link, normalize_cover_url, normalize_url
from src.schemas.event import EventRecord, FeedEntry, RecordOrigin

logger = logging.getLogger(__name__)

_ID_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")
ID_STAMP_FORMAT = "%Y%m%dT%H%M"


def feed_identifier(uid: str, start: datetime, tz: tzinfo) -> str:
    """
    Identifier of a feed occurrence.

    The UID without its ``@domain`` suffix, joined to the local start stamp,
    so occurrences sharing a UID stay distinct. Empty without a UID.

    Example:
        >>> feed_identifier("abc123@google.com", datetime(2025, 3, 1, 20, tzinfo=tz), tz)
        'abc123_20250301T2000'
    """
    base = (uid or "").split("@", 1)[0].strip()
    if not base:
        return ""
    stamp = start.astimezone(tz).strftime(ID_STAMP_FORMAT)
    return _ID_UNSAFE.sub("_", f"{base}_{stamp}")


class FeedRecordMapper:
    """
    Maps feed entries to EventRecords.

    Field sources, in priority order:
    - cover_image_url: ``cover`` directive, then first image URL in the description
    - ticket_url: ``ticket`` directive, then first ticketing link in the description
    - event_url: ``event`` directive, then the entry's URL property
    - place: ``place`` directive, then the entry's LOCATION

    A link directive whose value is not a link (prose, a phone number) is
    ignored and the next source is used.
    """

    def __init__(self, timezone: tzinfo, site_origin: str = ""):
        """
        Initialize the mapper.

        Args:
            timezone: Zone start times are written in
            site_origin: Origin used to absolutize site-relative cover paths
        """
        self.timezone = timezone
        self.site_origin = site_origin

    def map_entry(self, entry: FeedEntry) -> EventRecord:
        """Build the incoming record for one feed entry."""
        directives = extract_directives(entry.description)

        cover = self._pick(
            directives.get("cover_image_url"),
            find_cover_candidate(entry.description),
            lambda value: normalize_cover_url(value, self.site_origin),
            accept=looks_like_link,
        )
        ticket = self._pick(
            directives.get("ticket_url"),
            find_ticket_candidate(entry.description),
            normalize_url,
            accept=looks_like_link,
        )
        event_url = self._pick(directives.get("event_url"), entry.url, normalize_url, accept=looks_like_link)
        place = self._pick(directives.get("place"), entry.location, normalize_ws)

        return EventRecord(
            identifier=feed_identifier(entry.uid, entry.start, self.timezone),
            title=entry.clean_title,
            start_time=format_timestamp(entry.start, self.timezone),
            place=place,
            cover_image_url=cover,
            event_url=event_url,
            ticket_url=ticket,
            origin=RecordOrigin.AUTOMATIC,
        )

    @staticmethod
    def _pick(directive: Directive | None, fallback: str, normalize, accept=None) -> str:
        if directive is not None and accept is not None and not accept(directive.value):
            logger.debug(f"Ignoring directive value {directive.value!r}: not a link")
            directive = None
        if directive is not None:
            value = normalize(directive.value)
            return lock(value) if directive.locked and value else value
        return normalize(fallback) if fallback else ""
