"""
In-memory duplicate suppression for webhook events.

Green API delivers at least once and echoes our own sends back as new
webhooks, so every event is fingerprinted and checked against a short
retention window before any side effect happens.

The gate is process-local: it does not survive restarts and does not
deduplicate across multiple workers/instances.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

from app.constants.event_types import EVENT_DEDUP_SWEEP, EVENT_DEDUP_SWEEP_FAILURE
from app.core.config import settings
from app.services.normalizer import (
    NormalizedMessage,
    dig,
    extract_msg_type,
    first_present,
)
from app.utils.datetime_utils import epoch_ms

logger = logging.getLogger(__name__)

FINGERPRINT_SEPARATOR = "|"
MAX_FINGERPRINT_CHARS = 500

MESSAGE_ID_PATHS = (
    ("idMessage",),
    ("messageData", "idMessage"),
    ("messageData", "extendedTextMessageData", "stanzaId"),
    ("messageData", "quotedMessage", "stanzaId"),
)

EVENT_TAG_PATHS = (
    ("typeWebhook",),
    ("event",),
)


def extract_message_id(payload: Any) -> str:
    return first_present(payload, MESSAGE_ID_PATHS)


def extract_event_tag(payload: Any) -> str:
    """typeWebhook, then event, then the message type chain (no "unknown" default)."""
    return first_present(payload, EVENT_TAG_PATHS) or extract_msg_type(payload, default="")


def build_fingerprint(payload: Any, message: NormalizedMessage) -> str:
    """
    Composite key: chat_id|message_id|event_tag|text, truncated to 500 chars.
    """
    parts = [
        message.chat_id,
        extract_message_id(payload),
        extract_event_tag(payload),
        message.text,
    ]
    return FINGERPRINT_SEPARATOR.join(parts)[:MAX_FINGERPRINT_CHARS]


class DedupGate:
    """
    Fingerprint -> first-seen time (epoch ms), with a fixed retention window.

    Lookups never expire entries on their own; only sweep() removes them.
    `clock` returns epoch milliseconds and can be replaced in tests.
    """

    def __init__(self, ttl_seconds: int = 120, clock: Callable[[], int] | None = None):
        self.ttl_ms = int(ttl_seconds * 1000)
        self._clock = clock or epoch_ms
        self._seen: dict[str, int] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._seen

    def check_and_insert(self, fingerprint: str, now: int | None = None) -> bool:
        """
        Return True if fingerprint was already seen; otherwise record it and return False.

        Check and insert happen under one lock so two concurrent deliveries of the
        same event cannot both pass.
        """
        ts = self._clock() if now is None else now
        with self._lock:
            if fingerprint in self._seen:
                return True
            self._seen[fingerprint] = ts
            return False

    is_duplicate = check_and_insert

    def sweep(self, now: int | None = None) -> int:
        """Remove entries older than the retention window. Returns the number removed."""
        ts = self._clock() if now is None else now
        cutoff = ts - self.ttl_ms
        with self._lock:
            expired = [fp for fp, first_seen in self._seen.items() if first_seen < cutoff]
            for fp in expired:
                del self._seen[fp]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()


_gate: DedupGate | None = None


def get_dedup_gate() -> DedupGate:
    """Process-wide gate, created on first use with the configured TTL."""
    global _gate
    if _gate is None:
        _gate = DedupGate(ttl_seconds=settings.dedup_ttl_seconds)
    return _gate


async def run_sweeper(gate: DedupGate, interval_seconds: float = 30.0) -> None:
    """
    Sweep the gate every interval until cancelled.

    Runs as an asyncio task owned by the app lifecycle; shutdown cancels it, so
    it never keeps the process alive on its own.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = gate.sweep()
            if removed:
                logger.debug(
                    f"Dedup sweep removed {removed} entries ({len(gate)} remaining)",
                    extra={"event_type": EVENT_DEDUP_SWEEP},
                )
        except Exception as e:
            logger.error(
                f"Dedup sweep failed: {type(e).__name__}: {e}",
                exc_info=True,
                extra={"event_type": EVENT_DEDUP_SWEEP_FAILURE},
            )
