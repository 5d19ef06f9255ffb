# src/schemas/event.py
"""
Event record schema shared by the feed, the row store and the merge engine.

Every field is kept as text: stored values may carry the lock marker and
manual rows may hold anything a person typed into a spreadsheet, so parsing
is left to the components that need a typed value (identity, lifecycle).
"""

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from src.ingestion.normalization.text import normalize_ws, strip_lock


class RecordOrigin(str, Enum):
    """Provenance of a record."""

    MANUAL = "manual"
    AUTOMATIC = "auto"

    @classmethod
    def parse(cls, value: Any) -> "RecordOrigin | None":
        """
        Read a ``source`` cell permissively.

        Accepts "manual", "auto" and "automatic" in any case; anything else
        yields None.
        """
        text = normalize_ws(value).lower() if isinstance(value, str) else ""
        if text == "manual":
            return cls.MANUAL
        if text in ("auto", "automatic"):
            return cls.AUTOMATIC
        return None


# Store column -> EventRecord field, in column order
STORE_COLUMNS: dict[str, str] = {
    "id": "identifier",
    "name": "title",
    "start_time": "start_time",
    "place": "place",
    "cover": "cover_image_url",
    "event_url": "event_url",
    "ticket_url": "ticket_url",
    "source": "origin",
}

TEXT_FIELDS: tuple[str, ...] = (
    "identifier",
    "title",
    "start_time",
    "place",
    "cover_image_url",
    "event_url",
    "ticket_url",
)

MANUAL_ID_PREFIX = "manual_"


class EventRecord(BaseModel):
    """
    One event row.

    Values are stored verbatim, lock markers included; ``unlocked()`` returns
    the copy that is written back to the store.
    """

    identifier: str = ""
    title: str = ""
    start_time: str = ""
    place: str = ""
    cover_image_url: str = ""
    event_url: str = ""
    ticket_url: str = ""
    origin: RecordOrigin | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, float) and value != value:  # NaN from a spreadsheet
            return ""
        return str(value).strip()

    @field_validator("origin", mode="before")
    @classmethod
    def _coerce_origin(cls, value: Any) -> RecordOrigin | None:
        if isinstance(value, RecordOrigin) or value is None:
            return value
        return RecordOrigin.parse(value)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        """A record needs a title and a start time to be kept."""
        return bool(strip_lock(self.title)) and bool(strip_lock(self.start_time))

    @property
    def is_manual(self) -> bool:
        """Rows typed by hand: tagged ``manual`` or with a ``manual_`` id."""
        if self.origin is RecordOrigin.MANUAL:
            return True
        return strip_lock(self.identifier).startswith(MANUAL_ID_PREFIX)

    def value(self, field: str) -> str:
        """Field value without its lock marker."""
        return strip_lock(getattr(self, field))

    def unlocked(self) -> "EventRecord":
        """Copy with every lock marker removed."""
        return self.model_copy(update={f: strip_lock(getattr(self, f)) for f in TEXT_FIELDS})

    # ------------------------------------------------------------------
    # Store rows
    # ------------------------------------------------------------------

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EventRecord":
        """
        Build a record from a store row.

        Rows without a ``source`` cell are tagged manual when their id starts
        with ``manual_``.
        """
        data = {field: row.get(column) for column, field in STORE_COLUMNS.items()}
        record = cls(**data)
        if record.origin is None and record.is_manual:
            record = record.model_copy(update={"origin": RecordOrigin.MANUAL})
        return record

    def to_row(self) -> dict[str, str]:
        """Store row, in column order."""
        row = {}
        for column, field in STORE_COLUMNS.items():
            value = getattr(self, field)
            if isinstance(value, RecordOrigin):
                value = value.value
            row[column] = value or ""
        return row


class FeedEntry(BaseModel):
    """A calendar event as read from the feed, before any reconciliation."""

    uid: str = ""
    title: str = ""
    start: datetime
    location: str = ""
    url: str = ""
    description: str = ""

    model_config = ConfigDict(frozen=True)

    @field_validator("uid", "title", "location", "url", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("start")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("start must be timezone-aware")
        return value

    @property
    def clean_title(self) -> str:
        return normalize_ws(self.title)

