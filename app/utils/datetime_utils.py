"""
Timestamp helpers shared by the sheets rows and the dedup gate.
"""
from __future__ import annotations

import time
from datetime import UTC, datetime


def now_iso(dt: datetime | None = None) -> str:
    """
    Return an ISO-8601 UTC timestamp with millisecond precision and a Z suffix,
    e.g. 2024-05-01T12:30:00.123Z. Naive datetimes are treated as UTC.
    """
    if dt is None:
        dt = datetime.now(UTC)
    elif dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)
