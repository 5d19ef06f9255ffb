"""
Identity resolution for event records.

A record's identity is derived every run, never stored:

1. ``id:<identifier>`` when the record carries an identifier
2. ``fp:<slug(title)>__<YYYY-MM-DDTHH:MM>__<slug(place)>`` otherwise
3. a fuzzy match against same-minute records, used only when resolving an
   incoming record against the population

Feed identifiers change when an event is edited upstream, so the population
is indexed under both the identifier and the fingerprint of every record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from enum import Enum
from zoneinfo import ZoneInfo

from rapidfuzz.distance import Levenshtein

from src.ingestion.normalization.dates import minute_key
from src.ingestion.normalization.text import normalize_text, slugify
from src.schemas.event import EventRecord

logger = logging.getLogger(__name__)

ID_PREFIX = "id:"
FINGERPRINT_PREFIX = "fp:"
KEY_SEPARATOR = "__"


class DeduplicationStrategy(str, Enum):
    """Available identity resolution strategies."""

    EXACT = "exact"
    FUZZY = "fuzzy"


class IdentityResolver:
    """
    Compute identity keys and fuzzy same-event matches.

    The resolver is stateless; the population being matched against lives in
    a RecordIndex.
    """

    def __init__(
        self,
        timezone: ZoneInfo,
        strategy: DeduplicationStrategy = DeduplicationStrategy.FUZZY,
        max_distance: int = 2,
    ):
        """
        Initialize the resolver.

        Args:
            timezone: Zone start times are expressed in before minute bucketing
            strategy: EXACT disables the fuzzy fallback
            max_distance: Largest title edit distance still treated as the same event
        """
        self.timezone = timezone
        self.strategy = strategy
        self.max_distance = max_distance

    def minute_of(self, record: EventRecord) -> str:
        return minute_key(record.start_time, self.timezone)

    def fingerprint_of(self, record: EventRecord) -> str:
        """Content fingerprint: slugged title, start minute, slugged place."""
        return FINGERPRINT_PREFIX + KEY_SEPARATOR.join(
            (
                slugify(record.value("title")),
                self.minute_of(record),
                slugify(record.value("place")),
            )
        )

    def identifier_key(self, record: EventRecord) -> str | None:
        identifier = record.value("identifier")
        return f"{ID_PREFIX}{identifier}" if identifier else None

    def identity_of(self, record: EventRecord) -> str:
        """Self identity of a record: its identifier key, else its fingerprint."""
        return self.identifier_key(record) or self.fingerprint_of(record)

    def aliases_of(self, record: EventRecord) -> list[str]:
        """Every key the record can be found under."""
        keys = [self.fingerprint_of(record)]
        identifier = self.identifier_key(record)
        if identifier:
            keys.insert(0, identifier)
        return keys

    def find_fuzzy_match(
        self,
        record: EventRecord,
        candidates: Iterable[EventRecord],
    ) -> EventRecord | None:
        """
        Same-minute candidate whose title is within ``max_distance`` edits.

        Places must be equal once normalized, or both empty. The closest title
        wins; ties go to the earliest candidate.
        """
        if self.strategy != DeduplicationStrategy.FUZZY:
            return None

        minute = self.minute_of(record)
        title = normalize_text(record.value("title"))
        place = normalize_text(record.value("place"))

        best: EventRecord | None = None
        best_distance = self.max_distance + 1
        for candidate in candidates:
            if self.minute_of(candidate) != minute:
                continue
            if normalize_text(candidate.value("place")) != place:
                continue
            distance = Levenshtein.distance(
                title,
                normalize_text(candidate.value("title")),
                score_cutoff=self.max_distance,
            )
            if distance < best_distance:
                best, best_distance = candidate, distance
        return best


class RecordIndex:
    """
    Population of records keyed by identity.

    Each record is stored once under its primary key (the self identity it
    had when first inserted) and reachable through all of its aliases. Merged
    records keep their primary key and gain the aliases of the merged value.
    """

    def __init__(self, resolver: IdentityResolver):
        self.resolver = resolver
        self._records: dict[str, EventRecord] = {}
        self._aliases: dict[str, str] = {}
        self._by_minute: dict[str, list[str]] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[EventRecord]:
        return iter(self._records.values())

    def records(self) -> list[EventRecord]:
        """Records in insertion order."""
        return list(self._records.values())

    def resolve(self, record: EventRecord) -> str | None:
        """
        Primary key of the population record this one is the same event as.

        Tries the identifier, then the fingerprint, then the fuzzy fallback.
        """
        for alias in self.resolver.aliases_of(record):
            primary = self._aliases.get(alias)
            if primary is not None:
                return primary

        minute = self.resolver.minute_of(record)
        keys = self._by_minute.get(minute, [])
        match = self.resolver.find_fuzzy_match(record, (self._records[k] for k in keys))
        if match is None:
            return None
        for key in keys:
            if self._records[key] is match:
                logger.debug(
                    f"Fuzzy match: {record.value('title')!r} -> {match.value('title')!r}"
                )
                return key
        return None

    def get(self, primary: str) -> EventRecord:
        return self._records[primary]

    def insert(self, record: EventRecord) -> str:
        """Add a record that resolved to no existing identity."""
        primary = self.resolver.identity_of(record)
        if primary in self._records:
            # Same self identity but unreachable through its aliases
            primary = f"{primary}#{len(self._records)}"
        self._records[primary] = record
        self._register(primary, record)
        return primary

    def replace(self, primary: str, record: EventRecord) -> None:
        """Store the merged value of an existing identity."""
        self._records[primary] = record
        self._register(primary, record)

    def _register(self, primary: str, record: EventRecord) -> None:
        for alias in self.resolver.aliases_of(record):
            self._aliases.setdefault(alias, primary)
        bucket = self._by_minute.setdefault(self.resolver.minute_of(record), [])
        if primary not in bucket:
            bucket.append(primary)
