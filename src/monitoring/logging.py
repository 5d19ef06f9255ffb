"""Structured logging with context injection.

Features:
- console handler (stderr)
- optional run log file
- JSON logs optional (easy ingestion)
- context injection (run_id/source_id/stage) without needing a big framework
"""

from __future__ import annotations

import json
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CONTEXT_FIELDS: tuple[str, ...] = ("run_id", "source_id", "stage")

# ---------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "ts": time.time(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in CONTEXT_FIELDS:
            if hasattr(record, k):
                base[k] = getattr(record, k)

        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)

        # allow structured payload
        payload = getattr(record, "payload", None)
        if isinstance(payload, dict):
            base["payload"] = payload

        return json.dumps(base, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Format log records as human-readable text."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [self.formatTime(record, "%Y-%m-%d %H:%M:%S"), record.levelname, record.name]

        ctx = []
        run_id = getattr(record, "run_id", None)
        source_id = getattr(record, "source_id", None)
        stage = getattr(record, "stage", None)
        if run_id:
            ctx.append(f"run={run_id}")
        if source_id:
            ctx.append(f"source={source_id}")
        if stage:
            ctx.append(f"stage={stage}")
        if ctx:
            parts.append("[" + " ".join(ctx) + "]")

        parts.append(record.getMessage())
        s = " ".join(parts)

        if record.exc_info:
            s += "\n" + self.formatException(record.exc_info)
        return s


# ---------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingOptions:
    """Configure logging behavior for runs."""

    level: str = "INFO"
    json_logs: bool = False
    log_file: Path | None = None


def configure_logging(options: LoggingOptions | None = None) -> logging.Logger:
    """
    Install handlers on the root logger.

    Safe to call more than once: handlers from a previous call are replaced.
    """
    options = options or LoggingOptions()
    root = logging.getLogger()
    level = getattr(logging, options.level.upper(), logging.INFO)
    root.setLevel(level)

    for h in list(root.handlers):
        if getattr(h, "_event_sync_handler", False):
            root.removeHandler(h)
            h.close()

    fmt: logging.Formatter = JsonFormatter() if options.json_logs else TextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if options.log_file:
        options.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(options.log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(fmt)
        handler._event_sync_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # Third-party chatter
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
    return root


# ---------------------------------------------------------------------
# Context injection
# ---------------------------------------------------------------------


class ContextAdapter(logging.LoggerAdapter):
    """Inject context fields into log records."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        merged = dict(self.extra or {})
        merged.update(extra)
        kwargs["extra"] = merged
        return msg, kwargs


def with_context(
    logger: logging.Logger,
    *,
    run_id: str | None = None,
    source_id: str | None = None,
    stage: str | None = None,
) -> ContextAdapter:
    """Create a context adapter with run, source, and stage info."""
    extra: dict[str, Any] = {}
    if run_id:
        extra["run_id"] = run_id
    if source_id:
        extra["source_id"] = source_id
    if stage:
        extra["stage"] = stage
    return ContextAdapter(logger, extra)
