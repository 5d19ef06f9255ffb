"""
Directive extraction from free-text event descriptions.

Calendar editors override event fields by writing ``key: value`` lines in the
description, e.g.::

    Cover: https://example.com/poster.jpg
    !TicketURL: https://www.helloasso.com/...

A leading ``!`` locks the field. Keys are matched case- and
accent-insensitively against an ordered list of rules, one rule per field.
When a field has no directive, the heuristic scanners below may still find a
cover image or a ticketing link in the text.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from src.ingestion.normalization.text import normalize_text
from src.ingestion.normalization.urls import has_image_extension, url_host

_DIRECTIVE_LINE = re.compile(r"^\s*(?P<lock>!)?\s*(?P<key>[^\W\d][\w \-']{0,30}?)\s*:\s*(?P<value>.*?)\s*$")
_URL = re.compile(r"(?:https?://|www\.)[^\s<>\"'()\[\]]+", re.IGNORECASE)
_MARKDOWN_IMAGE = re.compile(r"!\[[^\]]*\]\(\s*<?(?P<url>[^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
_BREAKS = re.compile(r"<\s*br\s*/?\s*>|</\s*(?:p|div|li)\s*>", re.IGNORECASE)
_ANCHOR = re.compile(r"<a\b[^>]*\bhref\s*=\s*[\"']([^\"']+)[\"'][^>]*>.*?</a\s*>", re.IGNORECASE | re.DOTALL)
_TAGS = re.compile(r"<[^>]+>")
_TICKET_LABEL = re.compile(r"\b(?:tickets?|billets?|billetterie|reservations?|reserver|reservez)\b")
_TRAILING_PUNCTUATION = ".,;:!?"

TICKETING_HOSTS: tuple[str, ...] = (
    "helloasso.com",
    "billetweb.fr",
    "weezevent.com",
    "eventbrite.com",
    "eventbrite.fr",
    "eventbrite.co.uk",
    "shotgun.live",
    "yurplan.com",
    "dice.fm",
    "seetickets.com",
    "ticketmaster.fr",
    "fnacspectacles.com",
    "digitick.com",
    "festik.net",
    "tickettailor.com",
    "universe.com",
)


@dataclass(frozen=True)
class DirectiveRule:
    """Maps a group of directive keys onto one record field."""

    field: str
    synonyms: tuple[str, ...]

    def matches(self, key: str) -> bool:
        return key in self.synonyms


@dataclass(frozen=True)
class Directive:
    """Value of one directive and whether it was written with a lock."""

    value: str
    locked: bool = False


DIRECTIVE_RULES: tuple[DirectiveRule, ...] = (
    DirectiveRule(
        field="cover_image_url",
        synonyms=("cover", "image", "img", "poster", "affiche", "visuel", "flyer"),
    ),
    DirectiveRule(
        field="ticket_url",
        synonyms=(
            "ticketurl",
            "ticket",
            "tickets",
            "billet",
            "billets",
            "billetterie",
            "reservation",
        ),
    ),
    DirectiveRule(
        field="event_url",
        synonyms=("eventurl", "event", "lien", "link", "url", "facebook"),
    ),
    DirectiveRule(
        field="place",
        synonyms=("place", "lieu", "venue", "adresse", "address", "location"),
    ),
)

Directives = Mapping[str, Directive]


def html_to_text(text: str | None) -> str:
    """
    Plain-text lines from a description that may contain HTML.

    Google Calendar stores descriptions with ``<br>`` separators and wraps
    links in anchors; anchors are replaced by their ``href``.
    """
    if not text:
        return ""
    plain = _BREAKS.sub("\n", text)
    plain = _ANCHOR.sub(lambda m: m.group(1), plain)
    plain = _TAGS.sub("", plain)
    plain = html.unescape(plain)
    return plain.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")


def _canonical_key(raw_key: str) -> str:
    return normalize_text(raw_key).replace(" ", "")


def _clean_url(url: str) -> str:
    url = url.rstrip(_TRAILING_PUNCTUATION)
    if url.lower().startswith("www."):
        url = f"https://{url}"
    return url


def _iter_urls(text: str) -> Iterator[str]:
    for match in _URL.finditer(text):
        yield _clean_url(match.group(0))


def extract_directives(
    text: str | None,
    rules: tuple[DirectiveRule, ...] = DIRECTIVE_RULES,
) -> dict[str, Directive]:
    """
    Parse ``[!]key: value`` directives out of free text.

    Args:
        text: Description text (plain or HTML)
        rules: Ordered directive rules

    Returns:
        Dict of field name -> Directive; the first matching line per field wins
        and fields without a directive are absent.

    Example:
        >>> extract_directives("!Cover: a.jpg\\nTickets: https://t.example")["ticket_url"]
        Directive(value='https://t.example', locked=False)
    """
    found: dict[str, Directive] = {}
    for line in html_to_text(text).split("\n"):
        match = _DIRECTIVE_LINE.match(line)
        if not match:
            continue
        value = match.group("value").strip()
        if not value:
            continue
        key = _canonical_key(match.group("key"))
        for rule in rules:
            if rule.field in found or not rule.matches(key):
                continue
            found[rule.field] = Directive(value=value, locked=bool(match.group("lock")))
            break
    return found


def find_cover_candidate(text: str | None) -> str:
    """
    First image-looking URL in free text.

    Markdown images (``![alt](url)``) are preferred over bare URLs.
    """
    plain = html_to_text(text)
    if not plain:
        return ""

    for match in _MARKDOWN_IMAGE.finditer(plain):
        url = match.group("url").strip()
        if has_image_extension(url):
            return url

    for url in _iter_urls(plain):
        if has_image_extension(url):
            return url
    return ""


def is_ticketing_url(url: str) -> bool:
    """True when the URL's host is a known ticketing platform (or a subdomain of one)."""
    host = url_host(url)
    if not host:
        return False
    return any(host == known or host.endswith(f".{known}") for known in TICKETING_HOSTS)


def find_ticket_candidate(text: str | None) -> str:
    """
    First ticketing link in free text.

    A URL on a known ticketing host wins; otherwise the first URL on a line
    labelled tickets/billets/réservation.
    """
    plain = html_to_text(text)
    if not plain:
        return ""

    for url in _iter_urls(plain):
        if is_ticketing_url(url):
            return url

    for line in plain.split("\n"):
        if not _TICKET_LABEL.search(normalize_text(line)):
            continue
        for url in _iter_urls(line):
            return url
    return ""
