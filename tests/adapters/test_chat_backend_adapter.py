"""Tests for the streaming chat backend adapter."""
# pylint: disable=missing-function-docstring

import asyncio
import json

import httpx
import pytest

from bt_study_engine.adapters import chat_backend
from bt_study_engine.adapters.chat_backend import ChatBackendAdapter, status_error_message
from bt_study_engine.core.exceptions import ChatBackendError


def _collect(adapter: ChatBackendAdapter, payload: dict) -> bytes:
    async def _run() -> bytes:
        chunks = []
        async for chunk in adapter.stream_chat(payload):
            chunks.append(chunk)
        return b"".join(chunks)

    return asyncio.run(_run())


def test_stream_posts_payload_with_bearer_token():
    seen = {}
    body = b'data: {"type": "content", "content": "Hi"}\n\ndata: [DONE]\n\n'

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

    adapter = ChatBackendAdapter(
        "https://chat.test/functions/v1/chat", token="secret", transport=httpx.MockTransport(handler)
    )
    streamed = _collect(adapter, {"message": "Hello", "stream": True})

    assert streamed == body
    assert seen["auth"] == "Bearer secret"
    assert seen["payload"] == {"message": "Hello", "stream": True}


@pytest.mark.parametrize(
    ("status", "message"),
    [
        (429, "Rate limits exceeded, please try again later."),
        (402, "Payment required."),
        (500, "Request failed: 500"),
    ],
)
def test_rejected_requests_raise_with_user_message(status, message):
    adapter = ChatBackendAdapter(
        "https://chat.test/chat", token="", transport=httpx.MockTransport(lambda request: httpx.Response(status))
    )
    with pytest.raises(ChatBackendError) as excinfo:
        _collect(adapter, {"message": "Hello"})
    assert str(excinfo.value) == message
    assert excinfo.value.status_code == status
    assert status_error_message(status) == message


def test_missing_url_is_an_error(monkeypatch):
    monkeypatch.setattr(chat_backend.config, "CHAT_BACKEND_URL", None)
    with pytest.raises(ChatBackendError, match="not configured"):
        _collect(ChatBackendAdapter(), {"message": "Hello"})


def test_transport_errors_become_backend_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    adapter = ChatBackendAdapter("https://chat.test/chat", transport=httpx.MockTransport(handler))
    with pytest.raises(ChatBackendError, match="Request failed"):
        _collect(adapter, {"message": "Hello"})
