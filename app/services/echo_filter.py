"""
Self-echo detection.

Green API reports messages sent from the instance (including our own
auto-replies) as webhooks too. is_from_me is a best-effort heuristic, not a
guarantee:
- a false negative lets our own traffic re-enter the pipeline (exact repeats
  are still caught by the dedup gate);
- a false positive silently drops a real customer message (e.g. a customer
  who types our reply prefix verbatim).
"""

from typing import Any

from app.services.messaging.reply_template import AUTO_REPLY_PREFIX
from app.services.normalizer import NormalizedMessage, dig

FROM_ME_PATHS = (
    ("fromMe",),
    ("senderData", "fromMe"),
    ("messageData", "fromMe"),
)

ECHO_TAG_PATHS = (
    ("typeWebhook",),
    ("typeMessage",),
    ("messageData", "typeMessage"),
    ("event",),
)

OUTGOING_MARKER = "outgoing"


def _is_truthy_flag(value: Any) -> bool:
    if value is True:
        return True
    return isinstance(value, str) and value.strip().lower() == "true"


def has_from_me_flag(payload: Any) -> bool:
    return any(_is_truthy_flag(dig(payload, path)) for path in FROM_ME_PATHS)


def has_outgoing_tag(payload: Any) -> bool:
    for path in ECHO_TAG_PATHS:
        tag = dig(payload, path)
        if isinstance(tag, str) and OUTGOING_MARKER in tag.lower():
            return True
    return False


def is_from_me(
    payload: Any,
    message: NormalizedMessage,
    reply_prefix: str = AUTO_REPLY_PREFIX,
) -> bool:
    """True if the event looks like it was produced by this instance's own sends."""
    if has_from_me_flag(payload):
        return True
    if reply_prefix and message.text.startswith(reply_prefix):
        return True
    return has_outgoing_tag(payload)
