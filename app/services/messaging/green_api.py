"""
WhatsApp messaging via Green API, with dry-run mode for development.
"""

import logging

import httpx

from app.core.config import settings
from app.core.errors import ConfigurationError, ExternalCallError
from app.services.integrations.http_client import create_httpx_client

logger = logging.getLogger(__name__)


def build_send_url(instance_id: str, token: str, base_url: str | None = None) -> str:
    """https://api.green-api.com/waInstance{id}/sendMessage/{token}"""
    base = (base_url or settings.green_api_base_url).rstrip("/")
    return f"{base}/waInstance{instance_id}/sendMessage/{token}"


def _response_detail(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return response.text[:500]


async def send_whatsapp_message(
    chat_id: str,
    message: str,
    dry_run: bool | None = None,
) -> dict:
    """
    Send a text message to a chat.

    Args:
        chat_id: Green API chat id ("972501234567@c.us")
        message: Message text to send
        dry_run: If True, only log the message. Defaults to settings.whatsapp_dry_run

    Returns:
        Provider response JSON (contains idMessage), or a dry-run marker dict

    Raises:
        ConfigurationError: If GREEN_API_ID / GREEN_API_TOKEN are missing
        ExternalCallError: On network errors or non-2xx responses
    """
    if dry_run is None:
        dry_run = settings.whatsapp_dry_run

    if dry_run:
        logger.info(f"[DRY-RUN] Would send WhatsApp message to {chat_id}: {message}")
        return {"status": "dry_run", "idMessage": None, "chatId": chat_id}

    # Policy guard: credentials are checked at point of use, not at startup
    if not settings.green_api_id or not settings.green_api_token:
        raise ConfigurationError("Missing GREEN_API_ID or GREEN_API_TOKEN in env")

    url = build_send_url(settings.green_api_id, settings.green_api_token)
    payload = {"chatId": chat_id, "message": message}

    try:
        async with create_httpx_client() as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        raise ExternalCallError(
            f"Green API sendMessage returned {e.response.status_code}",
            detail=_response_detail(e.response),
        ) from e
    except httpx.HTTPError as e:
        raise ExternalCallError(f"Green API sendMessage failed: {type(e).__name__}: {e}") from e
