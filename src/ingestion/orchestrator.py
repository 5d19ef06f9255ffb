"""
Pipeline Orchestrator.

Runs one reconciliation pass:

    load store -> fetch feed -> map entries (directives, heuristics)
    -> resolve identities and merge -> unlock -> lifecycle filter
    -> sort by start -> write store

The pass is linear and idempotent: with an unchanged feed and no manual
edits, a second run writes a byte-identical store.
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from src.configs.settings import Settings
from src.ingestion.adapters import (
    BaseSourceAdapter,
    ICSAdapterConfig,
    ICSFeedAdapter,
    SourceType,
)
from src.ingestion.deduplication import IdentityResolver, RecordIndex
from src.ingestion.exceptions import FeedFetchError
from src.ingestion.lifecycle import filter_live
from src.ingestion.merge import FieldMerger
from src.ingestion.normalization.dates import parse_timestamp
from src.ingestion.normalization.record_mapper import FeedRecordMapper
from src.ingestion.store import CSVEventStore
from src.monitoring.logging import with_context
from src.schemas.event import EventRecord

logger = logging.getLogger(__name__)

FEED_SOURCE_ID = "calendar"


@dataclass
class ReconcileStats:
    """Counters of the union/merge step."""

    inserted: int = 0
    merged: int = 0


@dataclass
class PipelineExecutionResult:
    """Result of a reconciliation run."""

    execution_id: str
    started_at: datetime
    ended_at: datetime
    store_loaded: int = 0
    store_dropped: int = 0
    feed_entries: int = 0
    feed_skipped: int = 0
    inserted: int = 0
    merged: int = 0
    expired: int = 0
    written: bool = False
    records: list[EventRecord] = field(default_factory=list)

    @property
    def retained(self) -> int:
        """Number of records in the emitted table."""
        return len(self.records)

    @property
    def duration_seconds(self) -> float:
        """Calculate execution duration."""
        return (self.ended_at - self.started_at).total_seconds()

    def summary(self) -> dict[str, int | str | bool]:
        return {
            "execution_id": self.execution_id,
            "store_loaded": self.store_loaded,
            "store_dropped": self.store_dropped,
            "feed_entries": self.feed_entries,
            "feed_skipped": self.feed_skipped,
            "inserted": self.inserted,
            "merged": self.merged,
            "expired": self.expired,
            "retained": self.retained,
            "written": self.written,
        }


class ReconciliationPipeline:
    """
    Reconciles a calendar feed with the row store.

    Collaborators are injected so tests can swap the feed adapter and the
    store; settings are passed in, never read from the environment here.
    """

    def __init__(
        self,
        settings: Settings,
        adapter: BaseSourceAdapter,
        store: CSVEventStore,
        resolver: IdentityResolver | None = None,
        merger: FieldMerger | None = None,
        mapper: FeedRecordMapper | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Run settings
            adapter: Feed adapter
            store: Row store read at the start and written at the end
            resolver: Identity resolver; built from settings when omitted
            merger: Field merger; default policy table when omitted
            mapper: Feed entry mapper; built from settings when omitted
        """
        self.settings = settings
        self.adapter = adapter
        self.store = store
        self.tz = settings.tz
        self.resolver = resolver or IdentityResolver(
            timezone=self.tz,
            strategy=settings.DEDUPLICATION_STRATEGY,
            max_distance=settings.FUZZY_MAX_DISTANCE,
        )
        self.merger = merger or FieldMerger()
        self.mapper = mapper or FeedRecordMapper(
            timezone=self.tz, site_origin=settings.SITE_ORIGIN
        )
        self.logger = logging.getLogger(f"pipeline.{adapter.source_id}")

    # ========================================================================
    # STEPS
    # ========================================================================

    def fetch_incoming(self) -> tuple[list[EventRecord], int]:
        """
        Fetch the feed and map its entries to records.

        Raises:
            FeedFetchError: If the feed could not be retrieved or decoded
        """
        result = self.adapter.fetch()
        if not result.success:
            message = "; ".join(result.errors) or "Feed fetch failed"
            raise FeedFetchError(message, status_code=result.status_code)

        records: list[EventRecord] = []
        skipped = result.skipped
        for entry in result.entries:
            record = self.mapper.map_entry(entry)
            if not record.is_valid:
                self.logger.warning(f"Skipping feed entry {entry.uid!r}: missing title or start")
                skipped += 1
                continue
            records.append(record)
        return records, skipped

    def reconcile(
        self,
        existing: Iterable[EventRecord],
        incoming: Iterable[EventRecord],
    ) -> tuple[list[EventRecord], ReconcileStats]:
        """
        Union of both populations, one record per identity.

        Existing records are folded first (duplicates inside the store are
        merged too), then incoming records in feed order. Collisions are
        merged pairwise in encounter order.
        """
        index = RecordIndex(self.resolver)
        stats = ReconcileStats()

        for record in [*existing, *incoming]:
            primary = index.resolve(record)
            if primary is None:
                index.insert(record)
                stats.inserted += 1
                continue
            merged = self.merger.merge(index.get(primary), record)
            index.replace(primary, merged)
            stats.merged += 1

        return index.records(), stats

    def sort_records(self, records: list[EventRecord]) -> list[EventRecord]:
        """Stable sort by start time ascending; unparseable starts go last."""
        far_future = datetime.max.replace(tzinfo=UTC)

        def start_of(record: EventRecord) -> tuple[bool, datetime]:
            start = parse_timestamp(record.start_time, self.tz)
            return start is None, start or far_future

        return sorted(records, key=start_of)

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def execute(self, now: datetime | None = None, write: bool = True) -> PipelineExecutionResult:
        """
        Run one reconciliation pass.

        Args:
            now: Reference time for the lifecycle filter (defaults to the current time)
            write: When False, compute the table but leave the store untouched

        Returns:
            PipelineExecutionResult with counters and the emitted records

        Raises:
            FeedFetchError: The feed could not be fetched; nothing is written
            StoreError: The store could not be read or written
        """
        execution_id = uuid.uuid4().hex[:12]
        started_at = datetime.now(UTC)
        now = now or datetime.now(self.tz)
        log = with_context(self.logger, run_id=execution_id, source_id=self.adapter.source_id)

        log.info("Loading store", extra={"stage": "load"})
        loaded = self.store.load()

        log.info("Fetching feed", extra={"stage": "fetch"})
        incoming, skipped = self.fetch_incoming()
        log.info(
            f"Feed yielded {len(incoming)} records ({skipped} entries skipped)",
            extra={"stage": "fetch"},
        )

        merged, stats = self.reconcile(loaded.records, incoming)
        log.info(
            f"Reconciled {len(merged)} identities ({stats.merged} merges)",
            extra={"stage": "merge"},
        )

        unlocked = [record.unlocked() for record in merged]
        live, expired = filter_live(unlocked, now, self.settings.GRACE_HOURS, self.tz)
        log.info(f"Retired {len(expired)} expired records", extra={"stage": "filter"})

        records = self.sort_records(live)

        if write:
            self.store.save(records)
        else:
            log.info("Dry run: store left untouched", extra={"stage": "emit"})

        result = PipelineExecutionResult(
            execution_id=execution_id,
            started_at=started_at,
            ended_at=datetime.now(UTC),
            store_loaded=len(loaded.records),
            store_dropped=loaded.dropped,
            feed_entries=len(incoming),
            feed_skipped=skipped,
            inserted=stats.inserted,
            merged=stats.merged,
            expired=len(expired),
            written=write,
            records=records,
        )
        log.info(f"Retained {result.retained} records", extra={"stage": "emit", "payload": result.summary()})
        return result


def create_pipeline(settings: Settings) -> ReconciliationPipeline:
    """Wire the ICS adapter and CSV store described by ``settings``."""
    adapter = ICSFeedAdapter(
        ICSAdapterConfig(
            source_id=FEED_SOURCE_ID,
            source_type=SourceType.ICS,
            request_timeout=settings.REQUEST_TIMEOUT,
            feed_url=settings.FEED_URL,
            timezone=settings.tz,
        )
    )
    store = CSVEventStore(settings.STORE_PATH)
    return ReconciliationPipeline(settings=settings, adapter=adapter, store=store)
