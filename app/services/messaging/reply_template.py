"""
Auto-reply text.

AUTO_REPLY_PREFIX doubles as the echo marker: an inbound event whose text
starts with it is treated as our own reply coming back. Changing the prefix
means echoes of replies sent before the change are no longer recognized.
"""

AUTO_REPLY_PREFIX = "קיבלתי ✅"


def format_auto_reply(text: str) -> str:
    """
    Format the acknowledgement reply that quotes the customer's message.

    Args:
        text: Incoming message text (non-empty)

    Returns:
        Reply text starting with AUTO_REPLY_PREFIX
    """
    return f'{AUTO_REPLY_PREFIX}\nכתבת: "{text}"\n\nאיך אפשר לעזור?'
