# Messaging: Green API send and the auto-reply template.
# Re-export so "from app.services.messaging import ..." works for callers.

from app.services.messaging.green_api import build_send_url, send_whatsapp_message
from app.services.messaging.reply_template import AUTO_REPLY_PREFIX, format_auto_reply

__all__ = [
    "AUTO_REPLY_PREFIX",
    "build_send_url",
    "format_auto_reply",
    "send_whatsapp_message",
]
