"""
Text normalization utilities.

Pure (input -> output) helpers feeding identity computation, so their output
must not change between runs for the same input.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

LOCK_MARKER = "!"

_WS = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s]|_")
_NON_SLUG = re.compile(r"[^a-z0-9-]+")
_DASHES = re.compile(r"-{2,}")

# Ligatures NFKD leaves intact
_LIGATURES = str.maketrans({"œ": "oe", "Œ": "OE", "æ": "ae", "Æ": "AE", "ß": "ss"})


def normalize_ws(text: Any) -> str:
    """Collapse runs of whitespace into single spaces."""
    if not isinstance(text, str):
        return ""
    return _WS.sub(" ", text).strip()


def strip_accents(text: Any) -> str:
    """Remove diacritics, keeping the base letters."""
    if not isinstance(text, str):
        return ""
    decomposed = unicodedata.normalize("NFKD", text.translate(_LIGATURES))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(text: Any) -> str:
    """
    Canonical comparison form of a free-text value.

    Lower-cases, strips diacritics, turns punctuation into spaces and collapses
    whitespace. Never raises: non-string input yields an empty string.

    Example:
        >>> normalize_text("  Café-Dansant!  ")
        'cafe dansant'
    """
    if not isinstance(text, str):
        return ""
    folded = strip_accents(text).casefold()
    return normalize_ws(_NON_WORD.sub(" ", folded))


def slugify(text: Any) -> str:
    """
    URL-safe slug of a free-text value, restricted to ``[a-z0-9-]``.

    Example:
        >>> slugify("Soirée Kizomba @ Le Nadir")
        'soiree-kizomba-le-nadir'
    """
    base = normalize_text(text).replace(" ", "-")
    slug = _DASHES.sub("-", _NON_SLUG.sub("-", base))
    return slug.strip("-")


def is_locked(value: Any) -> bool:
    """True when the value carries the lock marker."""
    return isinstance(value, str) and value.lstrip().startswith(LOCK_MARKER)


def strip_lock(value: Any) -> str:
    """Value with the lock marker (and surrounding blanks) removed."""
    if not isinstance(value, str):
        return ""
    stripped = value.strip()
    if stripped.startswith(LOCK_MARKER):
        return stripped[len(LOCK_MARKER):].strip()
    return stripped


def lock(value: str) -> str:
    """Prefix a value with the lock marker."""
    return f"{LOCK_MARKER}{strip_lock(value)}"
