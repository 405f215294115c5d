"""
Google service account credentials from configuration.

GOOGLE_SERVICE_ACCOUNT_JSON may hold the raw JSON, the same JSON base64-encoded
(easier to paste into hosting dashboards), or a path to the key file.
"""

import base64
import binascii
import json
import logging
import os

from app.core.config import settings
from app.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def parse_service_account_info(raw: str) -> dict:
    """
    Parse credentials: direct JSON first, then base64-decoded JSON.

    Raises:
        ConfigurationError: If neither form yields a JSON object
    """
    try:
        info = json.loads(raw)
    except json.JSONDecodeError:
        try:
            decoded = base64.b64decode(raw.strip(), validate=False).decode("utf-8")
            info = json.loads(decoded)
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                "GOOGLE_SERVICE_ACCOUNT_JSON is neither valid JSON nor base64-encoded JSON"
            ) from e

    if not isinstance(info, dict):
        raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_JSON must decode to a JSON object")
    return info


def load_service_account_info(raw: str | None = None) -> dict:
    """
    Resolve service account info from settings (or an explicit value).

    Raises:
        ConfigurationError: If the value is missing or cannot be parsed
    """
    if raw is None:
        raw = settings.google_service_account_json
    if not raw:
        raise ConfigurationError("Missing GOOGLE_SERVICE_ACCOUNT_JSON env var")

    if os.path.exists(raw):
        with open(raw, encoding="utf-8") as f:
            raw = f.read()

    return parse_service_account_info(raw)


def get_google_credentials(raw: str | None = None):
    """Build google.oauth2 service account credentials scoped for Sheets."""
    from google.oauth2 import service_account

    info = load_service_account_info(raw)
    try:
        return service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
    except (ValueError, KeyError) as e:
        raise ConfigurationError(f"Invalid service account credentials: {e}") from e
