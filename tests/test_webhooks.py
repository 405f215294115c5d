"""
Tests for the HTTP webhook surface: immediate acknowledgment and background processing.
"""

import asyncio
import json
import socket
import threading
import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import uvicorn
from fastapi import BackgroundTasks

import app.services.pipeline as pipeline_module
from app.api.webhooks import green_api_webhook
from app.main import app
from app.middleware.correlation_id import HEADER_CORRELATION_ID
from app.core.config import settings
from app.core.errors import ExternalCallError
from app.services.pipeline import process_inbound_event
from tests.helpers.payloads import CHAT_ID, incoming_image, incoming_text


def test_webhook_acknowledges_with_plain_ok(client):
    response = client.post("/webhook", json=incoming_text("Hi"))
    assert response.status_code == 200
    assert response.text == "OK"


def test_webhook_processes_event_in_background(client, row_store, send_reply):
    client.post("/webhook", json=incoming_text("Hi"))

    # TestClient waits for background tasks before returning
    assert [row[3] for row in row_store.rows("conversation_logs")[1:]] == ["incoming", "outgoing"]
    assert len(row_store.rows("leads")) == 2
    send_reply.assert_awaited_once()
    assert send_reply.await_args.args[0] == CHAT_ID


def test_duplicate_delivery_processed_once(client, row_store, send_reply):
    payload = incoming_text("Hi")
    first = client.post("/webhook", json=payload)
    second = client.post("/webhook", json=payload)

    assert first.status_code == second.status_code == 200
    incoming = [row for row in row_store.rows("conversation_logs") if row[3] == "incoming"]
    assert len(incoming) == 1
    assert send_reply.await_count == 1


def test_image_webhook_does_not_reply(client, send_reply):
    response = client.post("/webhook", json=incoming_image())
    assert response.status_code == 200
    send_reply.assert_not_awaited()


def test_webhook_returns_200_when_processing_fails(client, deps, send_reply):
    failing_log = MagicMock()
    failing_log.log_incoming.side_effect = ExternalCallError("Google Sheets append failed")
    deps.conversation_log = failing_log

    response = client.post("/webhook", json=incoming_text("Hi"))

    assert response.status_code == 200
    assert response.text == "OK"
    send_reply.assert_not_awaited()


def test_non_object_json_is_acknowledged(client):
    response = client.post("/webhook", json=[1, 2, 3])
    assert response.status_code == 200


def test_empty_body_is_acknowledged(client):
    response = client.post("/webhook", content=b"", headers={"Content-Type": "application/json"})
    assert response.status_code == 200


def test_malformed_json_is_rejected(client, send_reply):
    response = client.post(
        "/webhook", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    send_reply.assert_not_awaited()


@pytest.mark.parametrize("content_type", ["text/plain", "application/x-www-form-urlencoded"])
def test_non_json_content_type_is_acknowledged_as_empty_object(
    client, row_store, send_reply, content_type
):
    response = client.post("/webhook", content=b"{not json", headers={"Content-Type": content_type})

    assert response.status_code == 200
    assert response.text == "OK"
    logs = row_store.rows("conversation_logs")[1:]
    assert len(logs) == 1
    assert logs[0][5] == "{}"
    send_reply.assert_not_awaited()


def test_json_content_type_with_charset_is_parsed(client, send_reply):
    response = client.post(
        "/webhook",
        content=json.dumps(incoming_text("Hi")).encode("utf-8"),
        headers={"Content-Type": "application/json; charset=utf-8"},
    )
    assert response.status_code == 200
    send_reply.assert_awaited_once()


def test_oversized_body_is_rejected(client, send_reply):
    with patch.object(settings, "max_body_bytes", 64):
        response = client.post("/webhook", json=incoming_text("x" * 500))
    assert response.status_code == 413
    send_reply.assert_not_awaited()


@pytest.mark.asyncio
async def test_acknowledgment_does_not_wait_for_processing():
    """The handler only schedules the pipeline; it never awaits collaborators."""
    request = MagicMock()
    request.headers = {"content-type": "application/json", "content-length": "2"}
    request.body = AsyncMock(return_value=json.dumps(incoming_text("Hi")).encode("utf-8"))
    request.state.correlation_id = "cid-123"
    background_tasks = BackgroundTasks()

    response = await green_api_webhook(request, background_tasks)

    assert response.status_code == 200
    assert len(background_tasks.tasks) == 1
    task = background_tasks.tasks[0]
    assert task.func is process_inbound_event
    assert task.kwargs == {"correlation_id": "cid-123"}


@pytest.mark.asyncio
async def test_acknowledgment_latency_independent_of_slow_collaborators(deps, send_reply):
    """Slow external calls delay only the background task, not the response."""
    release = asyncio.Event()

    async def slow_send(chat_id, text):
        await release.wait()
        return {"idMessage": "late"}

    deps.send_reply = slow_send
    request = MagicMock()
    request.headers = {"content-type": "application/json"}
    request.body = AsyncMock(return_value=json.dumps(incoming_text("Hi")).encode("utf-8"))
    request.state.correlation_id = "cid-slow"
    background_tasks = BackgroundTasks()

    response = await asyncio.wait_for(green_api_webhook(request, background_tasks), timeout=1.0)
    assert response.status_code == 200

    # Processing is still blocked on the send; the response was already produced
    task = background_tasks.tasks[0]
    processing = asyncio.create_task(process_inbound_event(*task.args, deps=deps, **task.kwargs))
    await asyncio.sleep(0.05)
    assert not processing.done()

    release.set()
    assert await asyncio.wait_for(processing, timeout=1.0) == "replied"


def _free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def live_server(deps, monkeypatch):
    """Run the app under a real uvicorn server in a background thread."""
    monkeypatch.setattr(pipeline_module, "build_default_deps", lambda: deps)
    port = _free_port()
    server = uvicorn.Server(
        uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning", lifespan="on")
    )
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 5.0
    while not server.started:
        if time.monotonic() > deadline:
            pytest.fail("uvicorn did not start within 5s")
        time.sleep(0.01)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=10.0)


def test_live_server_acknowledges_before_slow_send_finishes(live_server, deps):
    """Over a real ASGI server (middleware included) the ack never waits on the reply send."""
    send_done = threading.Event()

    async def slow_send(chat_id, text):
        await asyncio.sleep(1.5)
        send_done.set()
        return {"idMessage": "late"}

    deps.send_reply = slow_send

    started = time.monotonic()
    response = httpx.post(
        f"{live_server}/webhook",
        json=incoming_text("Hi"),
        headers={HEADER_CORRELATION_ID: "live-1"},
        timeout=5.0,
    )
    elapsed = time.monotonic() - started

    assert response.status_code == 200
    assert response.text == "OK"
    assert response.headers[HEADER_CORRELATION_ID] == "live-1"
    assert elapsed < 1.0
    assert not send_done.is_set()

    assert send_done.wait(timeout=5.0)
