"""
Per-event processing for inbound Green API webhooks.

Runs after the webhook has already been acknowledged, so its result never
reaches the caller: every outcome is reported through logs only.

    normalize -> dedup (stop if duplicate) -> echo filter (stop if ours)
    -> log incoming -> upsert lead -> [text message] send reply -> log outgoing

Any failure ends processing of that one event; nothing is raised.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from starlette.concurrency import run_in_threadpool

from app.constants.event_types import (
    EVENT_PIPELINE_DUPLICATE,
    EVENT_PIPELINE_ECHO,
    EVENT_PIPELINE_FAILURE,
    EVENT_WEBHOOK_RECEIVED,
    EVENT_WHATSAPP_SEND_FAILURE,
    EVENT_WHATSAPP_SEND_OK,
)
from app.core.config import settings
from app.core.errors import ExternalCallError
from app.middleware.correlation_id import get_correlation_id, set_correlation_id
from app.services.conversation_log import ConversationLog
from app.services.dedup import DedupGate, build_fingerprint, get_dedup_gate
from app.services.echo_filter import is_from_me
from app.services.integrations.sheets import SheetsRowStore
from app.services.leads import LeadRepository, SheetsLeadRepository, upsert_lead
from app.services.messaging import format_auto_reply, send_whatsapp_message
from app.services.normalizer import MSG_TYPE_TEXT, NormalizedMessage, normalize_event
from app.services.text_normalization import MAX_LOG_LINE_TEXT_CHARS, safe_str
from app.utils.datetime_utils import now_iso

logger = logging.getLogger(__name__)

OUTCOME_DUPLICATE = "duplicate"
OUTCOME_ECHO = "echo"
OUTCOME_PROCESSED = "processed"
OUTCOME_REPLIED = "replied"
OUTCOME_FAILED = "failed"

ReplySender = Callable[[str, str], Awaitable[Any]]


@dataclass
class PipelineDeps:
    gate: DedupGate
    conversation_log: ConversationLog
    leads: LeadRepository
    send_reply: ReplySender
    auto_reply_enabled: bool = True
    clock: Callable[[], datetime | None] = field(default=lambda: None)


_default_deps: PipelineDeps | None = None


def build_default_deps() -> PipelineDeps:
    """
    Wire the Sheets row store, Green API sender and the shared dedup gate.

    Nothing here touches credentials; they are resolved on the first call that
    needs them.
    """
    global _default_deps
    if _default_deps is None:
        row_store = SheetsRowStore()
        _default_deps = PipelineDeps(
            gate=get_dedup_gate(),
            conversation_log=ConversationLog(row_store),
            leads=SheetsLeadRepository(row_store),
            send_reply=send_whatsapp_message,
            auto_reply_enabled=settings.auto_reply_enabled,
        )
    return _default_deps


def should_reply(message: NormalizedMessage) -> bool:
    """Only text-like types (textMessage, extendedTextMessage, ...) with text and a chat get a reply."""
    return "text" in message.msg_type.lower() and bool(message.text) and bool(message.chat_id)


def _error_detail(error: Exception):
    if isinstance(error, ExternalCallError) and error.detail:
        return error.detail
    return str(error)


async def _send_and_log_reply(deps: PipelineDeps, message: NormalizedMessage) -> str:
    reply = format_auto_reply(message.text)
    try:
        send_result = await deps.send_reply(message.chat_id, reply)
    except Exception as e:
        logger.error(
            f"[SEND FAIL] chatId={message.chat_id} error_type={type(e).__name__}: "
            f"{_error_detail(e)}",
            extra={"event_type": EVENT_WHATSAPP_SEND_FAILURE},
        )
        return OUTCOME_FAILED

    logger.info(
        f"[SEND OK] chatId={message.chat_id} result={send_result}",
        extra={"event_type": EVENT_WHATSAPP_SEND_OK},
    )
    await run_in_threadpool(
        deps.conversation_log.log_outgoing,
        now_iso(deps.clock()),
        message.phone,
        message.chat_id,
        MSG_TYPE_TEXT,
        reply,
    )
    return OUTCOME_REPLIED


async def process_inbound_event(
    payload: Any,
    deps: PipelineDeps | None = None,
    correlation_id: str | None = None,
) -> str:
    """
    Process one webhook payload end to end.

    Args:
        payload: Parsed JSON body (non-dict bodies behave like {})
        deps: Collaborators (defaults to Sheets + Green API)
        correlation_id: Request correlation ID, re-bound for background logging

    Returns:
        One of duplicate, echo, processed, replied, failed
    """
    if correlation_id is not None:
        set_correlation_id(correlation_id)
    correlation_id = get_correlation_id()

    if not isinstance(payload, dict):
        payload = {}

    try:
        if deps is None:
            deps = build_default_deps()

        message = normalize_event(payload, now=deps.clock())
        logger.info(
            f"[WEBHOOK] chatId={message.chat_id} phone={message.phone} "
            f"msgType={message.msg_type} text={safe_str(message.text, MAX_LOG_LINE_TEXT_CHARS)}",
            extra={"correlation_id": correlation_id, "event_type": EVENT_WEBHOOK_RECEIVED},
        )

        # Check and insert are one atomic step: no await in between
        fingerprint = build_fingerprint(payload, message)
        if deps.gate.check_and_insert(fingerprint):
            logger.info(
                f"Ignoring duplicate event chatId={message.chat_id}",
                extra={"correlation_id": correlation_id, "event_type": EVENT_PIPELINE_DUPLICATE},
            )
            return OUTCOME_DUPLICATE

        if is_from_me(payload, message):
            logger.info(
                f"Ignoring self-originated event chatId={message.chat_id}",
                extra={"correlation_id": correlation_id, "event_type": EVENT_PIPELINE_ECHO},
            )
            return OUTCOME_ECHO

        await run_in_threadpool(
            deps.conversation_log.log_incoming,
            message.timestamp,
            message.phone,
            message.chat_id,
            message.msg_type,
            message.text or safe_str(payload),
        )

        if message.phone:
            await run_in_threadpool(
                upsert_lead,
                deps.leads,
                message.phone,
                message.text or f"[{message.msg_type}]",
                deps.clock(),
            )

        if not deps.auto_reply_enabled or not should_reply(message):
            return OUTCOME_PROCESSED

        return await _send_and_log_reply(deps, message)

    except Exception as e:
        # The webhook was already acknowledged; surface the failure in logs only
        logger.error(
            f"Webhook processing error - error_type={type(e).__name__}: {_error_detail(e)}",
            exc_info=True,
            extra={"correlation_id": correlation_id, "event_type": EVENT_PIPELINE_FAILURE},
        )
        return OUTCOME_FAILED
