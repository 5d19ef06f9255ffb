"""
Field-level merge of two records resolved to the same identity.

Two policies, chosen per field:

- MANUAL_FIRST: links and identifiers edited by hand are kept; the incoming
  value only fills an empty field.
- FEED_AUTHORITATIVE: factual event data follows the feed unless the stored
  value is locked.

A locked existing value always wins, and comes out unlocked. Generic
logo/placeholder covers count as "no value".
"""

from __future__ import annotations

import logging
from enum import Enum

from src.ingestion.normalization.text import is_locked, lock, strip_lock
from src.ingestion.normalization.urls import is_placeholder_cover
from src.schemas.event import EventRecord

logger = logging.getLogger(__name__)


class FieldPolicy(str, Enum):
    """How a field resolves when both sides may have a value."""

    MANUAL_FIRST = "manual_first"
    FEED_AUTHORITATIVE = "feed_authoritative"


FIELD_POLICIES: dict[str, FieldPolicy] = {
    "identifier": FieldPolicy.MANUAL_FIRST,
    "cover_image_url": FieldPolicy.MANUAL_FIRST,
    "event_url": FieldPolicy.MANUAL_FIRST,
    "ticket_url": FieldPolicy.MANUAL_FIRST,
    "title": FieldPolicy.FEED_AUTHORITATIVE,
    "start_time": FieldPolicy.FEED_AUTHORITATIVE,
    "place": FieldPolicy.FEED_AUTHORITATIVE,
}

COVER_FIELD = "cover_image_url"


class FieldMerger:
    """
    Merge an existing record with an incoming one.

    Pure and total: no I/O, no validation. Timestamps are merged as text;
    malformed ones are left to the lifecycle filter.
    """

    def __init__(self, policies: dict[str, FieldPolicy] | None = None):
        """
        Initialize the merger.

        Args:
            policies: Field -> FieldPolicy table; defaults to FIELD_POLICIES
        """
        self.policies = policies or FIELD_POLICIES

    def merge(self, existing: EventRecord, incoming: EventRecord) -> EventRecord:
        """
        Merged record for one identity.

        Args:
            existing: Record already in the population (store row or an
                earlier feed entry of this run)
            incoming: Record being folded in

        Returns:
            New EventRecord; neither argument is modified
        """
        updates: dict[str, str] = {}
        for field, policy in self.policies.items():
            updates[field] = self.merge_field(
                field,
                policy,
                getattr(existing, field),
                getattr(incoming, field),
            )
        updates["origin"] = existing.origin or incoming.origin
        return existing.model_copy(update=updates)

    def merge_field(
        self,
        field: str,
        policy: FieldPolicy,
        existing_value: str,
        incoming_value: str,
    ) -> str:
        """Resolve one field under its policy."""
        if is_locked(existing_value):
            return strip_lock(existing_value)

        current = strip_lock(existing_value)
        candidate = strip_lock(incoming_value)

        if field == COVER_FIELD:
            if is_placeholder_cover(candidate):
                if candidate:
                    logger.debug(f"Ignoring placeholder cover {candidate!r}")
                candidate = ""
            if is_placeholder_cover(current) and candidate:
                current = ""

        if policy == FieldPolicy.MANUAL_FIRST:
            chosen_incoming = not current and bool(candidate)
        else:
            chosen_incoming = bool(candidate)

        if not chosen_incoming:
            return current
        # Incoming locks stay in place until the orchestrator unlocks the run output
        return lock(candidate) if is_locked(incoming_value) else candidate
