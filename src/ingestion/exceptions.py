"""
Exceptions raised by the reconciliation run.

Only fatal conditions are modelled here. Per-entry and per-row problems are
recovered where they happen and surface as counters on the execution result.
"""


class ReconciliationError(Exception):
    """Base class for fatal reconciliation errors."""


class ConfigurationError(ReconciliationError):
    """A required setting is missing or a setting is invalid."""


class FeedFetchError(ReconciliationError):
    """The calendar feed could not be retrieved."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FeedParseError(ReconciliationError):
    """The feed payload is not a calendar document."""


class StoreError(ReconciliationError):
    """The row store could not be read or written."""
