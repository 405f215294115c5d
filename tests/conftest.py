import os
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ["APP_ENV"] = "dev"
os.environ.setdefault("SHEET_ID", "test_sheet_id")
os.environ.setdefault("GREEN_API_ID", "1101000001")
os.environ.setdefault("GREEN_API_TOKEN", "test_token")
os.environ.setdefault("WHATSAPP_DRY_RUN", "true")  # Never hit Green API from tests
os.environ.pop("GOOGLE_SERVICE_ACCOUNT_JSON", None)

import app.services.dedup as dedup_module  # noqa: E402
import app.services.pipeline as pipeline_module  # noqa: E402
from app.main import app  # noqa: E402
from app.services.conversation_log import ConversationLog  # noqa: E402
from app.services.dedup import DedupGate  # noqa: E402
from app.services.leads import SheetsLeadRepository  # noqa: E402
from app.services.pipeline import PipelineDeps  # noqa: E402
from tests.helpers.clock import FakeClock  # noqa: E402
from tests.helpers.row_store import (  # noqa: E402
    InMemoryRowStore,
    leads_table_with_header,
    logs_table_with_header,
)


@pytest.fixture(autouse=True)
def reset_module_state():
    """Fresh shared dedup gate and default deps for every test."""
    dedup_module._gate = None
    pipeline_module._default_deps = None
    yield
    dedup_module._gate = None
    pipeline_module._default_deps = None


@pytest.fixture
def clock():
    """Controllable epoch-ms clock for the dedup gate."""
    return FakeClock(start_ms=1_700_000_000_000)


@pytest.fixture
def row_store():
    """In-memory spreadsheet with header rows in both tabs."""
    return InMemoryRowStore(
        {
            "leads": leads_table_with_header(),
            "conversation_logs": logs_table_with_header(),
        }
    )


@pytest.fixture
def send_reply():
    """Async stand-in for send_whatsapp_message."""
    return AsyncMock(return_value={"idMessage": "BAE5REPLY0001"})


@pytest.fixture
def deps(row_store, send_reply, clock):
    """Pipeline collaborators wired to in-memory fakes."""
    return PipelineDeps(
        gate=DedupGate(ttl_seconds=120, clock=clock),
        conversation_log=ConversationLog(row_store),
        leads=SheetsLeadRepository(row_store),
        send_reply=send_reply,
    )


@pytest.fixture
def client(deps, monkeypatch):
    """Test client whose background pipeline uses the in-memory deps."""
    monkeypatch.setattr(pipeline_module, "build_default_deps", lambda: deps)
    with TestClient(app) as test_client:
        yield test_client
