"""Tests for conversation turn supervision and supersession."""
# pylint: disable=missing-function-docstring

import asyncio
import json

import pytest

from bt_study_engine.core.chat_models import TurnState
from bt_study_engine.core.exceptions import ChatBackendError
from bt_study_engine.core.models import ResourcePreferences
from bt_study_engine.services.conversation import ConversationSession

DONE = b"data: [DONE]\n\n"


def content(text: str) -> bytes:
    return f"data: {json.dumps({'type': 'content', 'content': text})}\n\n".encode("utf-8")


class ScriptedBackend:
    """Chat backend yielding canned chunks, optionally hanging afterwards."""

    def __init__(self, chunks, *, hang: bool = False, error: Exception | None = None) -> None:
        self.chunks = list(chunks)
        self.hang = hang
        self.error = error
        self.payloads: list[dict] = []
        self.yielded = asyncio.Event()

    async def stream_chat(self, payload):
        self.payloads.append(dict(payload))
        for chunk in self.chunks:
            yield chunk
            self.yielded.set()
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.Event().wait()


def test_late_chunks_for_superseded_turn_are_dropped():
    session = ConversationSession(conversation_id="c1")
    first = session.start_turn("t1")
    session.feed("t1", content("old answer"))

    second = session.start_turn("t2")

    assert first.state is TurnState.CANCELLED
    assert session.active_turn_id == "t2"
    assert session.feed("t1", content(" more")) == []
    assert first.answer.content == "old answer"
    assert first.answer not in session.transcript
    assert second.answer in session.transcript


def test_run_turn_streams_reply_and_builds_history():
    session = ConversationSession(conversation_id="c2", history_window=6)
    prefs = ResourcePreferences(language="es-419", organization="unfoldingWord", resource="ult")

    backend = ScriptedBackend([content("First "), content("reply."), DONE])
    answer, notices = asyncio.run(
        session.run_turn("What is grace?", backend, prefs=prefs, scripture_context="Ephesians 2:8")
    )

    assert answer.state is TurnState.DONE
    assert answer.content == "First reply."
    assert notices
    payload = backend.payloads[0]
    assert payload["message"] == "What is grace?"
    assert payload["conversationHistory"] == []
    assert payload["scriptureContext"] == "Ephesians 2:8"
    assert payload["userPrefs"]["language"] == "es-419"
    assert payload["stream"] is True

    follow_up = ScriptedBackend([content("Second."), DONE])
    asyncio.run(session.run_turn("And faith?", follow_up))
    assert follow_up.payloads[0]["conversationHistory"] == [
        {"role": "user", "content": "What is grace?"},
        {"role": "assistant", "content": "First reply."},
    ]


def test_history_window_keeps_most_recent_messages():
    session = ConversationSession(history_window=2)
    for text in ("one", "two", "three"):
        session.add_user_message(text)
    assert [m["content"] for m in session.history()] == ["two", "three"]
    assert ConversationSession(history_window=0).history() == []


def test_backend_failure_marks_turn_errored():
    session = ConversationSession()
    backend = ScriptedBackend([], error=ChatBackendError("Payment required.", status_code=402))

    answer, _ = asyncio.run(session.run_turn("Hello", backend))

    assert answer.state is TurnState.ERRORED
    assert "Payment required." in answer.content


def test_new_turn_cancels_in_flight_turn():
    session = ConversationSession(conversation_id="c3")
    slow = ScriptedBackend([content("stale")], hang=True)
    fast = ScriptedBackend([content("fresh"), DONE])

    async def scenario():
        first = asyncio.create_task(session.run_turn("q1", slow))
        await slow.yielded.wait()
        answer, _ = await session.run_turn("q2", fast)
        with pytest.raises(asyncio.CancelledError):
            await first
        return answer

    answer = asyncio.run(scenario())

    assert answer.content == "fresh"
    assistant = [m for m in session.transcript if m.role == "assistant"]
    assert assistant == [answer]
    assert [m.content for m in session.transcript if m.role == "user"] == ["q1", "q2"]
