"""Tests for the httpx Translation Helps adapter."""
# pylint: disable=missing-function-docstring

import asyncio
import json

import httpx
import pytest

from bt_study_engine.adapters.translation_helps import ACCEPT_HEADER, TranslationHelpsAdapter
from bt_study_engine.core.exceptions import ProviderRequestError


def _fetch(handler, endpoint="fetch-translation-notes", params=None):
    adapter = TranslationHelpsAdapter("https://helps.test/", transport=httpx.MockTransport(handler))

    async def _run():
        try:
            return await adapter.fetch(endpoint, params or {"reference": "John 3:16"})
        finally:
            await adapter.aclose()

    return asyncio.run(_run())


def test_fetch_builds_api_path_and_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["accept"] = request.headers["accept"]
        return httpx.Response(200, json={"matches": []})

    response = _fetch(handler, params={"reference": "John 3:16", "language": "en"})

    assert seen["url"].path == "/api/fetch-translation-notes"
    assert seen["url"].params["reference"] == "John 3:16"
    assert seen["url"].params["language"] == "en"
    assert seen["accept"] == ACCEPT_HEADER
    assert response is not None
    assert response.is_json
    assert json.loads(response.text) == {"matches": []}


def test_markdown_bodies_pass_through():
    def handler(request: httpx.Request) -> httpx.Response:
        del request
        return httpx.Response(200, text="## John 3:16\nnote", headers={"content-type": "text/markdown"})

    response = _fetch(handler)

    assert response is not None
    assert not response.is_json
    assert response.text.startswith("## John 3:16")


@pytest.mark.parametrize("status", [404, 500, 503])
def test_non_success_status_returns_none(status):
    assert _fetch(lambda request: httpx.Response(status, text="nope")) is None


def test_timeout_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ProviderRequestError, match="timed out"):
        _fetch(handler)


def test_connection_error_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderRequestError, match="request failed"):
        _fetch(handler)
