"""
Normalization helpers for event data.

This package provides:
- Text canonicalization: normalize_text, slugify, lock marker helpers
- URL canonicalization: normalize_url, normalize_cover_url, is_placeholder_cover
- Timestamp parsing: parse_timestamp, minute_key, format_timestamp
- Directive extraction: extract_directives plus cover/ticket heuristics

FeedRecordMapper lives in .record_mapper and is imported from there.
"""

from .dates import format_timestamp, minute_key, parse_timestamp
from .directives import (
    DIRECTIVE_RULES,
    Directive,
    DirectiveRule,
    extract_directives,
    find_cover_candidate,
    find_ticket_candidate,
    html_to_text,
    is_ticketing_url,
)
from .text import (
    LOCK_MARKER,
    is_locked,
    lock,
    normalize_text,
    normalize_ws,
    slugify,
    strip_accents,
    strip_lock,
)
from .urls import (
    is_placeholder_cover,
    normalize_cover_url,
    normalize_url,
    url_host,
)

__all__ = [
    # Text
    "LOCK_MARKER",
    "is_locked",
    "lock",
    "normalize_text",
    "normalize_ws",
    "slugify",
    "strip_accents",
    "strip_lock",
    # Dates
    "format_timestamp",
    "minute_key",
    "parse_timestamp",
    # URLs
    "is_placeholder_cover",
    "normalize_cover_url",
    "normalize_url",
    "url_host",
    # Directives
    "DIRECTIVE_RULES",
    "Directive",
    "DirectiveRule",
    "extract_directives",
    "find_cover_candidate",
    "find_ticket_candidate",
    "html_to_text",
    "is_ticketing_url",
]
