"""
Tests for the Google Sheets row store adapter and the conversation log.
"""

from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

from app.core.config import settings
from app.core.errors import ConfigurationError, ExternalCallError
from app.services.conversation_log import CONVERSATION_LOGS_RANGE, ConversationLog
from app.services.integrations.sheets import SheetsRowStore


def _http_error(status: int = 429, content: bytes = b'{"error": {"message": "Quota exceeded"}}'):
    resp = MagicMock()
    resp.status = status
    resp.reason = "Too Many Requests"
    return HttpError(resp, content)


def test_read_rows_returns_empty_list_for_empty_sheet():
    service = MagicMock()
    service.spreadsheets.return_value.values.return_value.get.return_value.execute.return_value = {}
    store = SheetsRowStore(spreadsheet_id="sheet123", service=service)
    assert store.read_rows("leads!A:F") == []


def test_http_error_is_wrapped_with_detail():
    service = MagicMock()
    request = service.spreadsheets.return_value.values.return_value.append.return_value
    request.execute.side_effect = _http_error()
    store = SheetsRowStore(spreadsheet_id="sheet123", service=service)

    with pytest.raises(ExternalCallError) as exc_info:
        store.append_row("conversation_logs!A:J", ["a"])

    assert "append" in str(exc_info.value)
    assert "Quota exceeded" in exc_info.value.detail


def test_network_error_is_wrapped():
    service = MagicMock()
    request = service.spreadsheets.return_value.values.return_value.get.return_value
    request.execute.side_effect = ConnectionResetError("reset by peer")
    store = SheetsRowStore(spreadsheet_id="sheet123", service=service)

    with pytest.raises(ExternalCallError):
        store.read_rows("leads!A:F")


def test_missing_sheet_id_raises_configuration_error():
    store = SheetsRowStore(service=MagicMock())
    with patch.object(settings, "sheet_id", None):
        with pytest.raises(ConfigurationError):
            store.read_rows("leads!A:F")


def test_missing_credentials_raise_configuration_error_on_first_use():
    store = SheetsRowStore(spreadsheet_id="sheet123")
    with patch.object(settings, "google_service_account_json", None):
        with pytest.raises(ConfigurationError):
            store.append_row("conversation_logs!A:J", ["a"])


def test_service_is_built_lazily_once():
    service = MagicMock()
    with patch(
        "app.services.integrations.sheets._get_sheets_service", return_value=service
    ) as build:
        store = SheetsRowStore(spreadsheet_id="sheet123")
        build.assert_not_called()
        store.read_rows("leads!A:F")
        store.read_rows("leads!A:F")
        build.assert_called_once()


def test_conversation_log_row_layout(row_store):
    log = ConversationLog(row_store)
    log.log_incoming("2024-05-01T10:00:00.000Z", "972501234567", "972501234567@c.us", "textMessage", "Hi")

    assert ("append", CONVERSATION_LOGS_RANGE) in row_store.calls
    assert row_store.rows("conversation_logs")[-1] == [
        "2024-05-01T10:00:00.000Z",
        "972501234567",
        "972501234567@c.us",
        "incoming",
        "textMessage",
        "Hi",
        "",
        "",
        "",
        "",
    ]


def test_conversation_log_truncates_message(row_store):
    log = ConversationLog(row_store)
    row = log.log_outgoing("ts", "1", "1@c.us", "textMessage", "z" * 5000)
    assert row.direction == "outgoing"
    assert len(row_store.rows("conversation_logs")[-1][5]) == 2000
