import logging
from datetime import datetime
from threading import Lock

from app.constants.event_types import EVENT_SHEETS_LEAD_INSERTED, EVENT_SHEETS_LEAD_UPDATED
from app.constants.statuses import STATUS_NEW
from app.services.leads.repository import LeadRecord, LeadRepository
from app.services.text_normalization import MAX_LEAD_MESSAGE_CHARS, safe_str
from app.utils.datetime_utils import now_iso

logger = logging.getLogger(__name__)

ACTION_INSERTED = "inserted"
ACTION_UPDATED = "updated"

# Serializes find + insert/update: at most one lead row per phone
_upsert_lock = Lock()


def upsert_lead(
    repo: LeadRepository,
    phone: str,
    last_message: str,
    now: datetime | None = None,
) -> dict:
    """
    Find the lead for a phone number, creating it on first contact.

    Policy:
    - No lead for this phone -> insert with name="", status="new",
      createdAt = updatedAt = now
    - Lead exists -> update only updatedAt and lastMessage; name, status and
      createdAt are never overwritten

    Args:
        repo: Lead repository
        phone: Phone number (digits of the chat id)
        last_message: Latest message text, truncated to 500 chars
        now: Optional timestamp override (tests)

    Returns:
        {"action": "inserted"} or {"action": "updated", "row_index": n}

    Raises:
        ValueError: If phone is empty
        ExternalCallError / ConfigurationError: From the underlying store
    """
    if not phone or not isinstance(phone, str):
        raise ValueError("phone must be a non-empty string")

    ts = now_iso(now)
    last_message = safe_str(last_message, MAX_LEAD_MESSAGE_CHARS)

    with _upsert_lock:
        existing = repo.find_by_phone(phone)
        if existing is None:
            repo.insert(
                LeadRecord(
                    phone=phone,
                    name="",
                    status=STATUS_NEW,
                    created_at=ts,
                    updated_at=ts,
                    last_message=last_message,
                )
            )
        else:
            repo.update(existing, updated_at=ts, last_message=last_message)

    if existing is None:
        logger.info(
            f"Inserted lead {phone}",
            extra={"event_type": EVENT_SHEETS_LEAD_INSERTED},
        )
        return {"action": ACTION_INSERTED}

    logger.info(
        f"Updated lead {phone} (row {existing.row_index})",
        extra={"event_type": EVENT_SHEETS_LEAD_UPDATED},
    )
    return {"action": ACTION_UPDATED, "row_index": existing.row_index}
