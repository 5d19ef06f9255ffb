"""
Unit tests for the CSV row store.
"""

from unittest.mock import patch

import pytest

from src.ingestion.exceptions import StoreError
from src.ingestion.store import CSVEventStore
from src.schemas.event import RecordOrigin

HEADER = "id,name,start_time,place,cover,event_url,ticket_url,source"


@pytest.fixture
def store(tmp_path):
    return CSVEventStore(tmp_path / "events.csv")


class TestLoad:
    """Tests for reading the store."""

    def test_missing_file_is_empty(self, store):
        result = store.load()
        assert result.records == []
        assert result.dropped == 0

    def test_empty_file_is_empty(self, store):
        store.path.write_text("", encoding="utf-8")
        assert store.load().records == []

    def test_reads_rows(self, store):
        store.path.write_text(
            HEADER + "\n"
            "manual_1,Bal folk,2030-03-01T20:00:00+01:00,Le Nadir,!poster.jpg,,,\n"
            "abc_20300302T2000,Concert,2030-03-02T20:00:00+01:00,,,https://example.com/c,,auto\n",
            encoding="utf-8",
        )
        records = store.load().records

        assert len(records) == 2
        assert records[0].identifier == "manual_1"
        assert records[0].cover_image_url == "!poster.jpg"
        assert records[0].origin is RecordOrigin.MANUAL
        assert records[1].event_url == "https://example.com/c"
        assert records[1].origin is RecordOrigin.AUTOMATIC

    def test_missing_columns_and_header_case(self, store):
        store.path.write_text(
            "Name,Start_Time\nBal folk,2030-03-01T20:00\n",
            encoding="utf-8",
        )
        [record] = store.load().records
        assert record.title == "Bal folk"
        assert record.identifier == ""
        assert record.origin is None

    def test_invalid_rows_dropped(self, store):
        store.path.write_text(
            HEADER + "\n"
            ",No start,,,,,,\n"
            ",,2030-03-01T20:00:00+01:00,,,,,\n"
            ",Kept,2030-03-01T20:00:00+01:00,,,,,\n",
            encoding="utf-8",
        )
        result = store.load()
        assert [r.title for r in result.records] == ["Kept"]
        assert result.dropped == 2

    def test_values_like_na_stay_text(self, store):
        store.path.write_text(
            HEADER + "\nNA,NULL,2030-03-01T20:00:00+01:00,N/A,,,,\n",
            encoding="utf-8",
        )
        [record] = store.load().records
        assert (record.identifier, record.title, record.place) == ("NA", "NULL", "N/A")

    def test_row_with_unquoted_comma_skipped(self, store):
        store.path.write_text(
            HEADER + "\n"
            "manual_1,Bal folk,2030-03-01T20:00:00+01:00,Le Nadir,,,,manual\n"
            "manual_2,Bal,2030-03-02T20:00:00+01:00,Le Nadir, Bourges,,,,manual\n"
            "manual_3,Concert,2030-03-03T20:00:00+01:00,Olympia,,,,manual\n",
            encoding="utf-8",
        )
        result = store.load()

        assert [r.identifier for r in result.records] == ["manual_1", "manual_3"]
        assert result.dropped == 1

    def test_unreadable_file(self, store):
        store.path.write_bytes(b"\xff\xfe\x00garbage\x00")
        with pytest.raises(StoreError):
            store.load()


class TestSave:
    """Tests for writing the store."""

    def test_header_written_for_empty_table(self, store):
        store.save([])
        assert store.path.read_text(encoding="utf-8") == HEADER + "\n"

    def test_row_layout(self, store, create_record):
        record = create_record(
            identifier="manual_1",
            title="Bal, folk",
            cover_image_url="poster.jpg",
            origin=RecordOrigin.MANUAL,
        )
        store.save([record])
        content = store.path.read_text(encoding="utf-8")

        assert content == (
            HEADER + "\n"
            'manual_1,"Bal, folk",2030-03-01T20:00:00+01:00,Le Nadir,poster.jpg,,,manual\n'
        )

    def test_roundtrip(self, store, create_record):
        records = [
            create_record(identifier="a", origin=RecordOrigin.AUTOMATIC),
            create_record(title="Café « dansant »", place="", ticket_url="https://t.example/x"),
        ]
        store.save(records)
        assert store.load().records == records

    def test_creates_parent_directory(self, tmp_path, create_record):
        store = CSVEventStore(tmp_path / "site" / "data" / "events.csv")
        store.save([create_record()])
        assert store.path.exists()

    def test_no_temporary_files_left(self, store, create_record):
        store.save([create_record()])
        assert [p.name for p in store.path.parent.iterdir()] == ["events.csv"]

    def test_failed_write_keeps_previous_store(self, store, create_record):
        store.save([create_record(title="Original")])
        before = store.path.read_bytes()

        with patch("src.ingestion.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StoreError):
                store.save([create_record(title="Replacement")])

        assert store.path.read_bytes() == before
        assert [p.name for p in store.path.parent.iterdir()] == ["events.csv"]
