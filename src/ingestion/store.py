"""
CSV row store.

The store is a hand-editable CSV with a fixed column order. It is read
permissively (missing file, missing columns and blank cells are all fine)
and written atomically as a full replacement.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from src.ingestion.exceptions import StoreError
from src.schemas.event import STORE_COLUMNS, EventRecord

logger = logging.getLogger(__name__)

CSV_ENCODING = "utf-8"


@dataclass
class StoreLoadResult:
    """Rows read from the store, split into kept records and dropped rows."""

    records: list[EventRecord]
    dropped: int = 0


class CSVEventStore:
    """File-backed store of EventRecords."""

    def __init__(self, path: Path | str, encoding: str = CSV_ENCODING):
        self.path = Path(path)
        self.encoding = encoding

    @property
    def columns(self) -> list[str]:
        return list(STORE_COLUMNS)

    def read_rows(self) -> tuple[list[dict[str, str]], int]:
        """
        Raw rows as dicts of text, in file order, and the number of malformed
        lines skipped.

        Every store column is present in each row; extra columns are kept.
        Lines with more cells than the header (typically an unquoted comma)
        are skipped with a warning.
        """
        if not self.path.exists():
            logger.info(f"No store at {self.path}, starting empty")
            return [], 0

        bad_lines: list[list[str]] = []

        def skip_bad_line(cells: list[str]) -> None:
            bad_lines.append(cells)
            logger.warning(f"Skipping malformed store line ({len(cells)} cells): {','.join(cells)!r}")
            return None

        try:
            df = pd.read_csv(
                self.path,
                dtype=str,
                keep_default_na=False,
                encoding=self.encoding,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=skip_bad_line,
            )
        except pd.errors.EmptyDataError:
            return [], 0
        except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
            raise StoreError(f"Cannot read store {self.path}: {e}") from e

        df.columns = [str(c).strip().lower() for c in df.columns]
        for column in self.columns:
            if column not in df.columns:
                df[column] = ""
        return df.fillna("").to_dict(orient="records"), len(bad_lines)

    def load(self) -> StoreLoadResult:
        """
        Valid records from the store.

        Rows without a title or a start time are dropped and counted, along
        with malformed lines.
        """
        records: list[EventRecord] = []
        rows, dropped = self.read_rows()
        for index, row in enumerate(rows, start=1):
            record = EventRecord.from_row(row)
            if not record.is_valid:
                logger.warning(f"Dropping store row #{index}: missing name or start_time")
                dropped += 1
                continue
            records.append(record)
        logger.info(f"Loaded {len(records)} store records ({dropped} dropped)")
        return StoreLoadResult(records=records, dropped=dropped)

    def save(self, records: Iterable[EventRecord]) -> Path:
        """
        Replace the store with ``records``.

        Writes to a temporary file next to the store, then renames it over the
        store so readers never see a partial file. The header is always
        written and every line ends with ``\\n``.
        """
        df = pd.DataFrame([r.to_row() for r in records], columns=self.columns)

        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
        except OSError as e:
            raise StoreError(f"Cannot prepare store {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding=self.encoding, newline="") as f:
                df.to_csv(f, index=False, lineterminator="\n")
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Cannot write store {self.path}: {e}") from e

        logger.info(f"Wrote {len(df)} records to {self.path}")
        return self.path
