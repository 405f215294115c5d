import json
import logging

from fastapi import APIRouter, BackgroundTasks, Request, status
from fastapi.responses import PlainTextResponse

from app.constants.event_types import EVENT_WEBHOOK_INVALID_BODY, EVENT_WEBHOOK_RECEIVED
from app.core.config import settings
from app.middleware.correlation_id import get_correlation_id
from app.services.pipeline import process_inbound_event

logger = logging.getLogger(__name__)

router = APIRouter()

ACK_BODY = "OK"
JSON_MEDIA_TYPE = "application/json"


def _plain_error(status_code: int, detail: str) -> PlainTextResponse:
    return PlainTextResponse(content=detail, status_code=status_code)


async def _read_json_body(request: Request) -> tuple[object | None, PlainTextResponse | None]:
    """
    Read and parse the JSON body, enforcing max_body_bytes.
    Returns (payload, None) on success; (None, error_response) on failure.
    Bodies that are not application/json are not read and parse as {}, as
    does an empty body.
    """
    media_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    if media_type != JSON_MEDIA_TYPE:
        logger.debug(f"Ignoring webhook body with content type {media_type or '(none)'}")
        return {}, None

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > settings.max_body_bytes:
        return None, _plain_error(status.HTTP_413_CONTENT_TOO_LARGE, "Payload Too Large")

    raw_body = await request.body()
    if len(raw_body) > settings.max_body_bytes:
        return None, _plain_error(status.HTTP_413_CONTENT_TOO_LARGE, "Payload Too Large")

    if not raw_body.strip():
        return {}, None

    try:
        return json.loads(raw_body.decode("utf-8")), None
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(
            f"Invalid JSON payload in webhook: {e}",
            extra={"event_type": EVENT_WEBHOOK_INVALID_BODY},
        )
        return None, _plain_error(status.HTTP_400_BAD_REQUEST, "Bad Request")


@router.post("/webhook")
async def green_api_webhook(request: Request, background_tasks: BackgroundTasks):
    """
    Receive a Green API webhook.

    Acknowledges with 200 immediately; normalization, Sheets writes and the
    auto-reply run as a background task after the response is sent, and their
    outcome is only visible in logs.
    """
    correlation_id = get_correlation_id(request)

    payload, err_response = await _read_json_body(request)
    if err_response is not None:
        return err_response

    logger.debug(
        f"webhook.received correlation_id={correlation_id}",
        extra={"correlation_id": correlation_id, "event_type": EVENT_WEBHOOK_RECEIVED},
    )

    # Fire-and-forget: the task's return value is discarded
    background_tasks.add_task(process_inbound_event, payload, correlation_id=correlation_id)
    return PlainTextResponse(content=ACK_BODY, status_code=status.HTTP_200_OK)
