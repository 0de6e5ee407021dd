"""Consumer for the chunked ``data: {json}`` chat stream.

:class:`StreamDecoder` turns raw byte chunks into typed stream events. It
tolerates chunk boundaries anywhere, including inside a multi-byte UTF-8
sequence or a JSON frame. :class:`StreamConsumer` applies those events to
the single in-flight :class:`AnswerRecord` and returns the notices a caller
should surface (reference found, answer updated, turn completed/failed).
"""

from __future__ import annotations

import codecs
import json
import uuid
from typing import Any, AsyncIterable, Optional, Union

from pydantic import ValidationError

from bt_study_engine.core.books import find_scripture_references
from bt_study_engine.core.chat_models import (
    AnswerRecord,
    AnswerUpdated,
    ChatMetadata,
    ConsumerNotice,
    ContentDeltaEvent,
    DoneEvent,
    ErrorEvent,
    MetadataEvent,
    ScriptureReferenceFound,
    StreamEvent,
    ToolResultsEvent,
    TurnCompleted,
    TurnFailed,
    TurnState,
)
from bt_study_engine.core.config import config
from bt_study_engine.core.exceptions import ChatBackendError, StreamProtocolError
from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.models import ToolCallRecord
from bt_study_engine.services.resource_links import links_from_metadata, resource_footer

logger = get_logger(__name__)

DATA_PREFIX = "data:"


def error_message(message: str) -> str:
    """User-visible inline error appended to a failed answer."""
    return f"I encountered an error: {message}. Please try again."


class StreamDecoder:
    """Incremental line decoder for the chat stream."""

    def __init__(self, done_sentinel: Optional[str] = None) -> None:
        self._done_sentinel = done_sentinel or config.STREAM_DONE_SENTINEL
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending = ""

    def feed(self, chunk: Union[bytes, str]) -> list[StreamEvent]:
        """Decode ``chunk`` and return events for every complete line."""
        text = chunk if isinstance(chunk, str) else self._utf8.decode(chunk)
        self._buffer += text
        events: list[StreamEvent] = []
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            event = self._parse_line(line)
            if event is not None:
                events.append(event)
        return events

    def finish(self) -> list[StreamEvent]:
        """Flush trailing bytes at end of stream.

        Raises :class:`StreamProtocolError` when the final frame cannot be decoded.
        """
        self._buffer += self._utf8.decode(b"", final=True)
        events: list[StreamEvent] = []
        line, self._buffer = self._buffer, ""
        if line.strip():
            event = self._parse_line(line)
            if event is not None:
                events.append(event)
        if self._pending:
            pending, self._pending = self._pending, ""
            raise StreamProtocolError(f"stream ended inside a frame: {pending[:80]!r}")
        return events

    def _parse_line(self, raw_line: str) -> Optional[StreamEvent]:
        line = raw_line.strip()
        if self._pending:
            if line.startswith(DATA_PREFIX):
                logger.warning("[stream] dropping malformed frame: %r", self._pending[:120])
                self._pending = ""
            else:
                payload = self._pending + line
                self._pending = ""
                return self._parse_payload(payload)
        if not line or line.startswith(":") or not line.startswith(DATA_PREFIX):
            return None
        payload = line[len(DATA_PREFIX):].strip()
        if payload == self._done_sentinel:
            return DoneEvent()
        return self._parse_payload(payload)

    def _parse_payload(self, payload: str) -> Optional[StreamEvent]:
        try:
            frame = json.loads(payload)
        except json.JSONDecodeError:
            # Truncated frame; joined with the next line.
            self._pending = payload
            return None
        if not isinstance(frame, dict):
            logger.warning("[stream] ignoring non-object frame: %r", payload[:120])
            return None
        try:
            return _frame_to_event(frame)
        except ValidationError as exc:
            logger.warning("[stream] ignoring invalid %s frame: %s", frame.get("type"), exc)
            return None


def _frame_to_event(frame: dict[str, Any]) -> Optional[StreamEvent]:
    frame_type = frame.get("type")
    if frame_type == "metadata":
        return MetadataEvent(metadata=ChatMetadata.model_validate(frame))
    if frame_type == "content":
        return ContentDeltaEvent(content=str(frame.get("content") or ""))
    if frame_type == "tool_results":
        calls = frame.get("tool_calls") or frame.get("toolCalls") or []
        return ToolResultsEvent(tool_calls=tuple(ToolCallRecord.model_validate(call) for call in calls))
    if frame_type == "error":
        return ErrorEvent(message=str(frame.get("error") or frame.get("message") or "Unknown error"))
    logger.debug("[stream] ignoring frame type %r", frame_type)
    return None


class StreamConsumer:
    """Drive one answer through ``idle -> streaming -> finalizing -> done``.

    ``errored`` is reachable from any non-terminal state and ``cancelled``
    marks a superseded turn. Terminal answers never change again.
    """

    def __init__(self, answer_id: Optional[str] = None, done_sentinel: Optional[str] = None) -> None:
        self.answer = AnswerRecord(id=answer_id or f"{uuid.uuid4().hex}-response")
        self._decoder = StreamDecoder(done_sentinel)

    @property
    def state(self) -> TurnState:
        return self.answer.state

    def feed(self, chunk: Union[bytes, str]) -> list[ConsumerNotice]:
        """Apply one raw chunk; chunks after a terminal state are ignored."""
        if self.answer.is_terminal:
            return []
        notices: list[ConsumerNotice] = []
        for event in self._decoder.feed(chunk):
            notices.extend(self.apply(event))
            if self.answer.is_terminal:
                break
        return notices

    def finish(self) -> list[ConsumerNotice]:
        """Handle end of stream; a missing ``[DONE]`` still finalizes the answer."""
        if self.answer.is_terminal:
            return []
        try:
            events = self._decoder.finish()
        except StreamProtocolError as exc:
            logger.warning("[stream] %s", exc)
            return self.fail(str(exc))
        notices: list[ConsumerNotice] = []
        for event in events:
            notices.extend(self.apply(event))
            if self.answer.is_terminal:
                return notices
        notices.extend(self._finalize())
        return notices

    async def consume(self, chunks: AsyncIterable[bytes]) -> list[ConsumerNotice]:
        """Consume ``chunks`` to completion, returning every notice in order."""
        notices: list[ConsumerNotice] = []
        try:
            async for chunk in chunks:
                notices.extend(self.feed(chunk))
                if self.answer.is_terminal:
                    break
        except ChatBackendError as exc:
            notices.extend(self.fail(str(exc)))
            return notices
        notices.extend(self.finish())
        return notices

    def apply(self, event: StreamEvent) -> list[ConsumerNotice]:
        """Apply one decoded event to the answer."""
        if self.answer.is_terminal:
            return []
        if isinstance(event, MetadataEvent):
            self.answer.metadata = event.metadata
            self.answer.navigation_hint = event.metadata.navigation_hint
            if event.metadata.scripture_reference:
                return [ScriptureReferenceFound(reference=event.metadata.scripture_reference)]
            return []
        if isinstance(event, ContentDeltaEvent):
            if not event.content:
                return []
            self._begin()
            self.answer.content += event.content
            return [AnswerUpdated(content=self.answer.content)]
        if isinstance(event, ToolResultsEvent):
            self.answer.tool_calls.extend(event.tool_calls)
            return []
        if isinstance(event, ErrorEvent):
            return self.fail(event.message)
        return self._finalize()

    def fail(self, message: str) -> list[ConsumerNotice]:
        """Move to ``errored``, keeping accumulated content and appending an inline error."""
        if self.answer.is_terminal:
            return []
        inline = error_message(message)
        content = self.answer.content.rstrip()
        self.answer.content = f"{content}\n\n{inline}" if content else inline
        self.answer.error = message
        self.answer.is_streaming = False
        self.answer.state = TurnState.ERRORED
        logger.info("[stream] answer %s errored: %s", self.answer.id, message)
        return [AnswerUpdated(content=self.answer.content), TurnFailed(answer_id=self.answer.id, message=message)]

    def cancel(self) -> None:
        """Mark the answer superseded; no notices are produced."""
        if self.answer.is_terminal:
            return
        self.answer.is_streaming = False
        self.answer.state = TurnState.CANCELLED
        logger.info("[stream] answer %s cancelled", self.answer.id)

    def _begin(self) -> None:
        if self.answer.state is TurnState.IDLE:
            self.answer.state = TurnState.STREAMING
            self.answer.is_streaming = True

    def _finalize(self) -> list[ConsumerNotice]:
        self.answer.state = TurnState.FINALIZING
        metadata = self.answer.metadata
        self.answer.mentioned_references = find_scripture_references(self.answer.content)
        self.answer.resources = links_from_metadata(metadata)
        if metadata is not None:
            self.answer.navigation_hint = metadata.navigation_hint
            if metadata.total_resources > 0:
                self.answer.content = f"{self.answer.content}\n\n{resource_footer(metadata.total_resources)}"
        self.answer.is_streaming = False
        self.answer.state = TurnState.DONE
        logger.info(
            "[stream] answer %s done: %d chars, %d resource link(s)",
            self.answer.id,
            len(self.answer.content),
            len(self.answer.resources),
        )
        return [AnswerUpdated(content=self.answer.content), TurnCompleted(answer_id=self.answer.id)]


__all__ = ["StreamDecoder", "StreamConsumer", "error_message", "DATA_PREFIX"]
