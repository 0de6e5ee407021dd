"""Per-conversation turn supervision.

A conversation has at most one in-flight turn. Starting a new turn cancels
and supersedes the active one: the superseded answer leaves the transcript
and any chunks still arriving for it are dropped.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Optional, Union

from bt_study_engine.core.chat_models import AnswerRecord, ConsumerNotice, TurnState
from bt_study_engine.core.config import config
from bt_study_engine.core.logging import get_logger, turn_context
from bt_study_engine.core.models import ResourcePreferences
from bt_study_engine.core.ports import ChatBackendPort
from bt_study_engine.services.stream_consumer import StreamConsumer

logger = get_logger(__name__)


class ConversationSession:
    """Transcript plus the single active :class:`StreamConsumer` of a conversation."""

    def __init__(self, conversation_id: Optional[str] = None, history_window: Optional[int] = None) -> None:
        self.conversation_id = conversation_id or uuid.uuid4().hex
        self.history_window = history_window if history_window is not None else config.CHAT_HISTORY_WINDOW
        self.transcript: list[AnswerRecord] = []
        self._active: Optional[StreamConsumer] = None
        self._active_task: Optional[asyncio.Task[Any]] = None

    @property
    def active_turn_id(self) -> Optional[str]:
        return self._active.answer.id if self._active is not None else None

    @property
    def active_answer(self) -> Optional[AnswerRecord]:
        return self._active.answer if self._active is not None else None

    def add_user_message(self, content: str) -> AnswerRecord:
        record = AnswerRecord(id=f"{uuid.uuid4().hex}-user", role="user", content=content, state=TurnState.DONE)
        self.transcript.append(record)
        return record

    def history(self) -> list[dict[str, str]]:
        """The last ``history_window`` completed messages as ``{role, content}`` pairs."""
        settled = [m for m in self.transcript if m.role == "user" or m.state is TurnState.DONE]
        window = settled[-self.history_window:] if self.history_window > 0 else []
        return [{"role": m.role, "content": m.content} for m in window]

    def start_turn(self, turn_id: Optional[str] = None) -> StreamConsumer:
        """Begin a new assistant turn, superseding any active one."""
        self._supersede()
        consumer = StreamConsumer(answer_id=turn_id or f"{uuid.uuid4().hex}-response")
        self._active = consumer
        self.transcript.append(consumer.answer)
        logger.info("[conversation] %s started turn %s", self.conversation_id, consumer.answer.id)
        return consumer

    def _supersede(self) -> None:
        previous = self._active
        if previous is None or previous.answer.is_terminal:
            return
        previous.cancel()
        self.transcript = [m for m in self.transcript if m is not previous.answer]
        task = self._active_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        self._active_task = None
        logger.info("[conversation] %s superseded turn %s", self.conversation_id, previous.answer.id)

    def feed(self, turn_id: str, chunk: Union[bytes, str]) -> list[ConsumerNotice]:
        """Route ``chunk`` to ``turn_id``; chunks for superseded turns are dropped."""
        if self._active is None or self._active.answer.id != turn_id:
            logger.debug("[conversation] dropping late chunk for turn %s", turn_id)
            return []
        return self._active.feed(chunk)

    def finish(self, turn_id: str) -> list[ConsumerNotice]:
        if self._active is None or self._active.answer.id != turn_id:
            return []
        return self._active.finish()

    def fail(self, turn_id: str, message: str) -> list[ConsumerNotice]:
        if self._active is None or self._active.answer.id != turn_id:
            return []
        return self._active.fail(message)

    def build_payload(
        self,
        message: str,
        *,
        prefs: Optional[ResourcePreferences] = None,
        scripture_context: Optional[str] = None,
        response_language: Optional[str] = None,
    ) -> dict[str, Any]:
        """Request body for the chat backend, built before ``message`` joins the transcript."""
        prefs = prefs or ResourcePreferences()
        return {
            "message": message,
            "conversationHistory": self.history(),
            "scriptureContext": scripture_context,
            "responseLanguage": response_language,
            "userPrefs": prefs.model_dump(),
            "stream": True,
        }

    async def run_turn(
        self,
        message: str,
        backend: ChatBackendPort,
        *,
        prefs: Optional[ResourcePreferences] = None,
        scripture_context: Optional[str] = None,
        response_language: Optional[str] = None,
    ) -> tuple[AnswerRecord, list[ConsumerNotice]]:
        """Send ``message`` and stream the reply into a fresh answer."""
        payload = self.build_payload(
            message,
            prefs=prefs,
            scripture_context=scripture_context,
            response_language=response_language,
        )
        self.add_user_message(message)
        consumer = self.start_turn()
        self._active_task = asyncio.current_task()
        turn_id = consumer.answer.id
        notices: list[ConsumerNotice] = []
        with turn_context(self.conversation_id, turn_id):
            try:
                async for chunk in backend.stream_chat(payload):
                    notices.extend(self.feed(turn_id, chunk))
                    if consumer.answer.is_terminal:
                        break
                notices.extend(self.finish(turn_id))
            except asyncio.CancelledError:
                consumer.cancel()
                raise
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("[conversation] turn %s failed: %s", turn_id, exc)
                notices.extend(self.fail(turn_id, str(exc)))
            finally:
                if self._active is consumer:
                    self._active_task = None
        return consumer.answer, notices


__all__ = ["ConversationSession"]
