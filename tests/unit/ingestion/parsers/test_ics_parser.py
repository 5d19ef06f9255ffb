"""
Unit tests for the ICS parser.
"""

from datetime import datetime

import pytest

from src.ingestion.exceptions import FeedParseError
from src.ingestion.parsers.ics_parser import ICSParser


@pytest.fixture
def parser(tz):
    return ICSParser(timezone=tz)


class TestICSParser:
    """Tests for ICSParser.parse."""

    def test_parses_events(self, parser, build_ics, tz):
        payload = build_ics(
            [
                {
                    "uid": "abc123@google.com",
                    "summary": "Bal folk",
                    "dtstart": ";TZID=Europe/Paris:20300301T200000",
                    "location": "Le Nadir",
                    "url": "https://example.com/e1",
                    "description": "Cover: poster.jpg\nTickets: https://t.example/1",
                }
            ]
        )
        entries, skipped = parser.parse(payload)

        assert skipped == 0
        [entry] = entries
        assert entry.uid == "abc123@google.com"
        assert entry.title == "Bal folk"
        assert entry.start == datetime(2030, 3, 1, 20, 0, tzinfo=tz)
        assert entry.location == "Le Nadir"
        assert entry.url == "https://example.com/e1"
        assert entry.description == "Cover: poster.jpg\nTickets: https://t.example/1"

    def test_utc_start_converted(self, parser, build_ics):
        payload = build_ics([{"uid": "u1", "summary": "Concert", "dtstart": ":20300301T190000Z"}])
        [entry], _ = parser.parse(payload)
        assert entry.start.hour == 20
        assert entry.start.utcoffset().total_seconds() == 3600

    def test_floating_start_in_configured_zone(self, parser, build_ics, tz):
        payload = build_ics([{"uid": "u1", "summary": "Concert", "dtstart": ":20300301T200000"}])
        [entry], _ = parser.parse(payload)
        assert entry.start == datetime(2030, 3, 1, 20, 0, tzinfo=tz)

    def test_all_day_start_is_local_midnight(self, parser, build_ics, tz):
        payload = build_ics([{"uid": "u1", "summary": "Festival", "dtstart": ";VALUE=DATE:20300301"}])
        [entry], _ = parser.parse(payload)
        assert entry.start == datetime(2030, 3, 1, 0, 0, tzinfo=tz)

    def test_skips_incomplete_and_cancelled(self, parser, build_ics):
        payload = build_ics(
            [
                {"uid": "no-title", "summary": None, "dtstart": ":20300301T200000"},
                {"uid": "blank-title", "summary": "   ", "dtstart": ":20300301T200000"},
                {"uid": "no-start", "summary": "Bal", "dtstart": None},
                {"uid": "cancelled", "summary": "Bal", "dtstart": ":20300301T200000", "status": "CANCELLED"},
                {"uid": "kept", "summary": "Bal", "dtstart": ":20300301T200000", "status": "CONFIRMED"},
            ]
        )
        entries, skipped = parser.parse(payload)
        assert [e.uid for e in entries] == ["kept"]
        assert skipped == 4

    def test_feed_order_preserved(self, parser, build_ics):
        payload = build_ics(
            [
                {"uid": "b", "summary": "Later", "dtstart": ":20300302T200000"},
                {"uid": "a", "summary": "Earlier", "dtstart": ":20300301T200000"},
            ]
        )
        entries, _ = parser.parse(payload)
        assert [e.uid for e in entries] == ["b", "a"]

    def test_empty_calendar(self, parser, build_ics):
        assert parser.parse(build_ics([])) == ([], 0)

    @pytest.mark.parametrize("payload", [b"", b"<!DOCTYPE html><html><body>Sign in</body></html>"])
    def test_not_a_calendar(self, parser, payload):
        with pytest.raises(FeedParseError):
            parser.parse(payload)
