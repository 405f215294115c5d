"""
Append-only conversation audit trail in the `conversation_logs` tab.

Rows are never read, updated or deleted from here. The intent / aiModel /
tokensIn / tokensOut columns are reserved for a classifier and written empty.
"""

from dataclasses import dataclass

from app.constants.statuses import DIRECTION_INCOMING, DIRECTION_OUTGOING
from app.services.leads.repository import RowStore
from app.services.text_normalization import MAX_LOG_MESSAGE_CHARS, safe_str

CONVERSATION_LOGS_RANGE = "conversation_logs!A:J"


@dataclass(frozen=True)
class ConversationLogRow:
    timestamp: str
    phone: str
    chat_id: str
    direction: str
    msg_type: str
    message: str
    intent: str = ""
    ai_model: str = ""
    tokens_in: str = ""
    tokens_out: str = ""

    def to_row(self) -> list[str]:
        return [
            self.timestamp,
            self.phone,
            self.chat_id,
            self.direction,
            self.msg_type,
            safe_str(self.message, MAX_LOG_MESSAGE_CHARS),
            self.intent,
            self.ai_model,
            self.tokens_in,
            self.tokens_out,
        ]


class ConversationLog:
    def __init__(self, row_store: RowStore):
        self.row_store = row_store

    def append(self, row: ConversationLogRow) -> None:
        self.row_store.append_row(CONVERSATION_LOGS_RANGE, row.to_row())

    def log_incoming(self, timestamp, phone, chat_id, msg_type, message) -> ConversationLogRow:
        row = ConversationLogRow(
            timestamp=timestamp,
            phone=phone,
            chat_id=chat_id,
            direction=DIRECTION_INCOMING,
            msg_type=msg_type,
            message=safe_str(message, MAX_LOG_MESSAGE_CHARS),
        )
        self.append(row)
        return row

    def log_outgoing(self, timestamp, phone, chat_id, msg_type, message) -> ConversationLogRow:
        row = ConversationLogRow(
            timestamp=timestamp,
            phone=phone,
            chat_id=chat_id,
            direction=DIRECTION_OUTGOING,
            msg_type=msg_type,
            message=safe_str(message, MAX_LOG_MESSAGE_CHARS),
        )
        self.append(row)
        return row
