"""
Shared pytest fixtures for the event feed reconciler test suite.

Provides factories for EventRecord objects, ICS documents and settings.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from src.configs.settings import Settings
from src.schemas.event import EventRecord, RecordOrigin

PARIS = ZoneInfo("Europe/Paris")


@pytest.fixture
def tz():
    """Zone used across the suite."""
    return PARIS


@pytest.fixture
def create_record():
    """
    Return a function that creates EventRecord objects with sensible defaults.

    Example:
        record = create_record(title="Bal Kizomba", cover_image_url="!poster.jpg")
    """

    def _create_record(
        title: str = "Soirée Kizomba",
        start_time: str = "2030-03-01T20:00:00+01:00",
        place: str = "Le Nadir",
        **kwargs,
    ) -> EventRecord:
        defaults = {
            "identifier": "",
            "title": title,
            "start_time": start_time,
            "place": place,
            "cover_image_url": "",
            "event_url": "",
            "ticket_url": "",
            "origin": None,
        }
        defaults.update(kwargs)
        return EventRecord(**defaults)

    return _create_record


@pytest.fixture
def manual_record(create_record):
    """A hand-typed store row with a locked cover."""
    return create_record(
        identifier="manual_1",
        cover_image_url="!poster.jpg",
        origin=RecordOrigin.MANUAL,
    )


def _ics_event(
    uid: str | None,
    summary: str | None,
    dtstart: str | None,
    location: str = "",
    url: str = "",
    description: str = "",
    status: str = "",
) -> list[str]:
    lines = ["BEGIN:VEVENT"]
    if uid:
        lines.append(f"UID:{uid}")
    if summary is not None:
        lines.append(f"SUMMARY:{summary}")
    if dtstart:
        lines.append(f"DTSTART{dtstart}")
    if location:
        lines.append(f"LOCATION:{location}")
    if url:
        lines.append(f"URL:{url}")
    if description:
        escaped = description.replace("\\", "\\\\").replace(",", "\\,").replace("\n", "\\n")
        lines.append(f"DESCRIPTION:{escaped}")
    if status:
        lines.append(f"STATUS:{status}")
    lines.append("DTSTAMP:20250101T000000Z")
    lines.append("END:VEVENT")
    return lines


@pytest.fixture
def build_ics():
    """
    Return a function that renders a VCALENDAR document.

    Each event is a dict of _ics_event keyword arguments; ``dtstart`` is the
    property suffix, e.g. ``";TZID=Europe/Paris:20300301T200000"`` or
    ``":20300301T190000Z"``.
    """

    def _build_ics(events: list[dict]) -> bytes:
        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//Test//Calendar//EN",
        ]
        for event in events:
            lines.extend(_ics_event(**event))
        lines.append("END:VCALENDAR")
        return ("\r\n".join(lines) + "\r\n").encode("utf-8")

    return _build_ics


@pytest.fixture
def make_settings(tmp_path, monkeypatch):
    """Return a function building Settings isolated from the host environment."""
    monkeypatch.chdir(tmp_path)
    for name in ("FEED_URL", "GCAL_ICS_URL", "TIMEZONE", "GRACE_HOURS", "STORE_PATH"):
        monkeypatch.delenv(name, raising=False)

    def _make_settings(**overrides) -> Settings:
        values = {
            "FEED_URL": "https://calendar.example.com/basic.ics",
            "STORE_PATH": tmp_path / "events.csv",
        }
        values.update(overrides)
        return Settings(**values)

    return _make_settings


@pytest.fixture
def now_paris():
    """Reference time before every default record's start."""
    return datetime(2030, 2, 1, 12, 0, tzinfo=PARIS)
