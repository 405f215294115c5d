"""
Text coercion for sheet cells and log lines.

Webhook payload values can be strings, numbers, nested objects or missing
entirely. Everything written to Sheets goes through safe_str so a cell is
always a bounded string.
"""

import json

# Column limits
MAX_LOG_MESSAGE_CHARS = 2000
MAX_LEAD_MESSAGE_CHARS = 500
MAX_LOG_LINE_TEXT_CHARS = 200


def safe_str(value, max_len: int = MAX_LOG_MESSAGE_CHARS) -> str:
    """
    Convert any value to a string no longer than max_len.

    None becomes "", strings are kept, anything else is JSON-serialized
    (compact, non-ASCII kept as-is) before truncation.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        s = value
    else:
        try:
            s = json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
        except (TypeError, ValueError):
            s = str(value)
    return s[:max_len] if len(s) > max_len else s
