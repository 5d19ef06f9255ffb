"""
Ingestion layer of the event feed reconciler.

Fetches the calendar feed, maps its entries to event records, reconciles them
with the hand-editable CSV store and retires past events.

Key Components:
- ICSFeedAdapter: Fetches and decodes the calendar feed
- FeedRecordMapper: Applies description directives and link heuristics
- IdentityResolver / RecordIndex: Match records describing the same event
- FieldMerger: Lock-aware, manual-first field merge
- ReconciliationPipeline: Runs one pass and writes the store
"""
