"""httpx adapter streaming chat turns from the conversational backend."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, AsyncIterator, Mapping, Optional

import httpx

from bt_study_engine.core.config import config
from bt_study_engine.core.exceptions import ChatBackendError
from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.ports import ChatBackendPort

logger = get_logger(__name__)


def status_error_message(status_code: int) -> str:
    """User-facing message for a rejected chat request."""
    if status_code == HTTPStatus.TOO_MANY_REQUESTS:
        return "Rate limits exceeded, please try again later."
    if status_code == HTTPStatus.PAYMENT_REQUIRED:
        return "Payment required."
    return f"Request failed: {status_code}"


class ChatBackendAdapter(ChatBackendPort):
    """POST a chat request and yield the streamed response body chunk by chunk."""

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url or config.CHAT_BACKEND_URL
        self._token = token if token is not None else config.CHAT_BACKEND_TOKEN
        self._timeout = timeout if timeout is not None else config.CHAT_BACKEND_TIMEOUT_SECONDS
        self._transport = transport

    async def stream_chat(self, payload: Mapping[str, Any]) -> AsyncIterator[bytes]:
        if not self._url:
            raise ChatBackendError("Chat backend URL is not configured.")
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                async with client.stream("POST", self._url, json=dict(payload), headers=headers) as response:
                    if response.status_code >= HTTPStatus.BAD_REQUEST:
                        logger.warning("[chat-backend] request rejected: %s", response.status_code)
                        raise ChatBackendError(
                            status_error_message(response.status_code),
                            status_code=response.status_code,
                        )
                    async for chunk in response.aiter_bytes():
                        yield chunk
        except httpx.TimeoutException as exc:
            raise ChatBackendError("Request timed out") from exc
        except httpx.HTTPError as exc:
            raise ChatBackendError(f"Request failed: {exc}") from exc


__all__ = ["ChatBackendAdapter", "status_error_message"]
