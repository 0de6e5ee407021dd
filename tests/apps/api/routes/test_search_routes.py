"""Tests for the search, tool execution, replay and scope endpoints."""
# pylint: disable=missing-function-docstring,redefined-outer-name

import json
from http import HTTPStatus

import pytest
from fastapi.testclient import TestClient

from bt_study_engine.apps.api.app import create_app
from bt_study_engine.core.exceptions import ProviderRequestError
from bt_study_engine.services import build_default_services


@pytest.fixture
def provider(make_provider, json_body):
    def responder(endpoint, params):
        if endpoint == "fetch-scripture":
            if params.get("filter"):
                return json_body(json.dumps({"matches": [{"reference": "John 3:16", "text": "For God so loved"}]}))
            return json_body(json.dumps({"reference": params["reference"], "text": "For God so loved the world"}))
        if endpoint == "fetch-translation-notes":
            return json_body(json.dumps([{"reference": "John 3:16", "note": "God's love for all people"}]))
        if endpoint == "fetch-translation-academy":
            raise ProviderRequestError("fetch-translation-academy timed out")
        return None

    return make_provider(responder)


@pytest.fixture
def client(provider) -> TestClient:
    return TestClient(create_app(build_default_services(provider_port=provider)))


def test_search_consolidated(client: TestClient) -> None:
    resp = client.post("/api/v1/search", json={"query": "love", "scope": "John 3"})

    assert resp.status_code == HTTPStatus.OK
    body = resp.json()
    assert body["search"]["scopeType"] == "chapter"
    assert body["search"]["results"]["scripture"]["matches"][0]["reference"] == "John 3:16"
    assert body["search"]["results"]["words"] is None
    assert body["search"]["toolCallsIssued"][0]["tool"] == "search-agent"
    (message,) = body["messages"]
    assert message["agent"] == "main"
    assert "resources found" in message["content"]


def test_search_per_agent(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/search",
        json={"query": "love", "scope": "John 3", "resourceTypes": ["scripture", "notes"], "policy": "per-agent"},
    )

    assert resp.status_code == HTTPStatus.OK
    assert [m["agent"] for m in resp.json()["messages"]] == ["scripture", "notes"]


def test_search_rejects_empty_query(client: TestClient) -> None:
    resp = client.post("/api/v1/search", json={"query": ""})
    assert resp.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_tool_execute_passage(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/tools/execute",
        json={"tool": "get_scripture_passage", "args": {"reference": "John 3:16"}},
    )

    assert resp.status_code == HTTPStatus.OK
    body = resp.json()
    assert body["resultType"] == "passage"
    assert body["result"]["rawContent"] == "For God so loved the world"


def test_tool_execute_errors(client: TestClient) -> None:
    unknown = client.post("/api/v1/tools/execute", json={"tool": "summon_dragon"})
    assert unknown.status_code == HTTPStatus.BAD_REQUEST

    missing = client.post("/api/v1/tools/execute", json={"tool": "get_translation_notes", "args": {}})
    assert missing.status_code == HTTPStatus.BAD_REQUEST

    upstream = client.post(
        "/api/v1/tools/execute",
        json={"tool": "get_translation_academy", "args": {"moduleId": "figs-metaphor"}},
    )
    assert upstream.status_code == HTTPStatus.BAD_GATEWAY


def test_replay_matches_live_execution(client: TestClient) -> None:
    call = {"tool": "get_scripture_passage", "args": {"reference": "John 3:16"}}
    live = client.post("/api/v1/tools/execute", json=call).json()["result"]

    resp = client.post("/api/v1/replay", json={"toolCalls": [call, {"tool": "unknown_tool", "args": {}}]})

    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["passage"] == live


def test_replay_collects_resources(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/replay",
        json={"toolCalls": [{"tool": "get_translation_notes", "args": {"reference": "John 3:16"}}]},
    )
    body = resp.json()
    assert body["passage"] is None
    assert body["resources"]["notes"]["matches"][0]["rawContent"] == "God's love for all people"


def test_scope_endpoint(client: TestClient) -> None:
    resp = client.get("/api/v1/scope", params={"reference": "Bible"})
    body = resp.json()
    assert body["scopeType"] == "corpus"
    assert [t["value"] for t in body["tokens"]] == ["OT", "NT"]


def test_search_without_provider_is_unavailable() -> None:
    client = TestClient(create_app(build_default_services()))
    resp = client.post("/api/v1/search", json={"query": "love"})
    assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
