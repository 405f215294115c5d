"""
Normalize Green API webhook payloads into a NormalizedMessage.

Green API sends several payload shapes (incomingMessageReceived,
outgoingMessageReceived, state/status notifications, legacy flat payloads).
The same logical field can live at several nesting paths, so each field is
resolved from an ordered tuple of key paths: the first non-empty value wins.
Missing or wrongly-typed fields never raise; they resolve to "".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.services.text_normalization import safe_str
from app.utils.datetime_utils import now_iso

KeyPath = tuple[str, ...]

# Order matters: earlier paths win ties.
CHAT_ID_PATHS: tuple[KeyPath, ...] = (
    ("chatId",),
    ("senderData", "chatId"),
    ("messageData", "chatId"),
    ("senderData", "sender"),
)

MSG_TYPE_PATHS: tuple[KeyPath, ...] = (
    ("typeMessage",),
    ("messageData", "typeMessage"),
)

# Presence of this block implies a plain text message when no type is given
TEXT_MESSAGE_DATA_PATH: KeyPath = ("messageData", "textMessageData")

TEXT_PATHS: tuple[KeyPath, ...] = (
    ("message",),
    ("textMessage",),
    ("messageData", "textMessageData", "textMessage"),
    ("messageData", "extendedTextMessageData", "text"),
    ("messageData", "quotedMessage", "textMessage"),
)

MSG_TYPE_TEXT = "textMessage"
MSG_TYPE_UNKNOWN = "unknown"


@dataclass(frozen=True)
class NormalizedMessage:
    timestamp: str
    chat_id: str
    phone: str
    msg_type: str
    text: str


def dig(payload: Any, path: KeyPath) -> Any:
    """Follow path through nested dicts; None if any step is missing or not a dict."""
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    # Falsy non-strings (None, False, 0, {}, []) count as absent
    if not value:
        return ""
    if isinstance(value, (dict, list)):
        return safe_str(value)
    return str(value)


def _is_truthy(value: Any) -> bool:
    # Containers count as present even when empty; scalars by truthiness
    return isinstance(value, (dict, list)) or bool(value)


def first_present(payload: Any, paths: tuple[KeyPath, ...]) -> str:
    """Return the first non-empty value found along paths, as a string ("" if none)."""
    for path in paths:
        value = _as_text(dig(payload, path))
        if value:
            return value
    return ""


def extract_chat_id(payload: Any) -> str:
    return first_present(payload, CHAT_ID_PATHS)


def extract_phone(chat_id: str) -> str:
    """Digits part of a chat id: "972501234567@c.us" -> "972501234567"."""
    if not chat_id:
        return ""
    return str(chat_id).split("@", 1)[0]


def extract_msg_type(payload: Any, default: str = MSG_TYPE_UNKNOWN) -> str:
    """
    Message type with fallback to "textMessage" when only a textMessageData
    block is present. `default` is returned when nothing matches.
    """
    msg_type = first_present(payload, MSG_TYPE_PATHS)
    if msg_type:
        return msg_type
    if _is_truthy(dig(payload, TEXT_MESSAGE_DATA_PATH)):
        return MSG_TYPE_TEXT
    return default


def extract_text(payload: Any) -> str:
    return first_present(payload, TEXT_PATHS)


def normalize_event(payload: Any, now: datetime | None = None) -> NormalizedMessage:
    """
    Build a NormalizedMessage from an arbitrary webhook payload.

    Args:
        payload: Parsed JSON body (anything that is not a dict yields empty fields)
        now: Optional timestamp override (tests)

    Returns:
        NormalizedMessage; never raises for malformed input
    """
    chat_id = extract_chat_id(payload)
    return NormalizedMessage(
        timestamp=now_iso(now),
        chat_id=chat_id,
        phone=extract_phone(chat_id),
        msg_type=extract_msg_type(payload),
        text=extract_text(payload),
    )
