"""
Google Sheets row store.

The spreadsheet holds two tabs used as tables:
- conversation_logs!A:J  append-only audit trail of messages
- leads!A:F              one row per phone number

SheetsRowStore is a thin adapter over the Sheets v4 values API: read all
rows of a range, append a row, overwrite a range. Errors are wrapped in
ExternalCallError with the API response detail; nothing is retried.
"""

import logging
import threading
from typing import Any

from app.core.config import settings
from app.core.errors import ConfigurationError, ExternalCallError
from app.services.integrations.credentials import get_google_credentials

logger = logging.getLogger(__name__)

VALUE_INPUT_OPTION = "RAW"
INSERT_DATA_OPTION = "INSERT_ROWS"


def _get_sheets_service():
    """
    Build a Google Sheets API service client from configured credentials.

    Raises:
        ConfigurationError: If credentials are missing or invalid
    """
    from googleapiclient.discovery import build

    credentials = get_google_credentials()
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def _http_error_detail(error: Exception) -> Any:
    content = getattr(error, "content", None)
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")[:500]
    return content or str(error)


class SheetsRowStore:
    """
    Row-oriented access to one spreadsheet.

    The API client is built on first use, so a missing SHEET_ID or credential
    only fails the event that needed it.
    """

    def __init__(self, spreadsheet_id: str | None = None, service=None):
        self._spreadsheet_id = spreadsheet_id
        self._service = service
        # googleapiclient service objects share one http transport; not thread-safe
        self._lock = threading.Lock()

    @property
    def spreadsheet_id(self) -> str:
        spreadsheet_id = self._spreadsheet_id or settings.sheet_id
        if not spreadsheet_id:
            raise ConfigurationError("Missing SHEET_ID env var")
        return spreadsheet_id

    @property
    def service(self):
        if self._service is None:
            self._service = _get_sheets_service()
        return self._service

    def _execute(self, operation: str, range_a1: str, request) -> dict:
        from google.auth.exceptions import GoogleAuthError
        from googleapiclient.errors import HttpError

        try:
            with self._lock:
                return request.execute() or {}
        except HttpError as e:
            raise ExternalCallError(
                f"Google Sheets {operation} failed for {range_a1}",
                detail=_http_error_detail(e),
            ) from e
        except GoogleAuthError as e:
            raise ExternalCallError(
                f"Google Sheets {operation} auth failed for {range_a1}: {type(e).__name__}: {e}"
            ) from e
        except OSError as e:
            raise ExternalCallError(
                f"Google Sheets {operation} failed for {range_a1}: {type(e).__name__}: {e}"
            ) from e

    def read_rows(self, range_a1: str) -> list[list[Any]]:
        """Return all rows in range_a1 (header included); [] for an empty sheet."""
        spreadsheet_id = self.spreadsheet_id
        request = self.service.spreadsheets().values().get(
            spreadsheetId=spreadsheet_id,
            range=range_a1,
        )
        result = self._execute("read", range_a1, request)
        return result.get("values", []) or []

    def append_row(self, range_a1: str, values: list[Any]) -> dict:
        """Append one row after the last row of the table in range_a1."""
        spreadsheet_id = self.spreadsheet_id
        request = self.service.spreadsheets().values().append(
            spreadsheetId=spreadsheet_id,
            range=range_a1,
            valueInputOption=VALUE_INPUT_OPTION,
            insertDataOption=INSERT_DATA_OPTION,
            body={"values": [values]},
        )
        return self._execute("append", range_a1, request)

    def update_range(self, range_a1: str, rows: list[list[Any]]) -> dict:
        """Overwrite the cells of range_a1 with rows."""
        spreadsheet_id = self.spreadsheet_id
        request = self.service.spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=range_a1,
            valueInputOption=VALUE_INPUT_OPTION,
            body={"values": rows},
        )
        return self._execute("update", range_a1, request)

