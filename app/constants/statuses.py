"""
Lead status and conversation direction constants - centralized to avoid drift.
"""

# Lead statuses. Only STATUS_NEW is ever written by the bot; other values are
# set by hand in the sheet and must be preserved on update.
STATUS_NEW = "new"

# Conversation log directions
DIRECTION_INCOMING = "incoming"
DIRECTION_OUTGOING = "outgoing"
