"""Stream adapter for converting Anthropic Messages events to OpenAI chunks.

Converts the Anthropic Messages streaming event sequence into the OpenAI chat
completion chunk sequence. Only three backend events produce output; the
rest are absorbed.

Anthropic Messages Events (input, already decoded from SSE):
    {"type":"message_start","message":{...}}
    {"type":"content_block_start","index":0,"content_block":{"type":"text","text":""}}
    {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hello"}}
    {"type":"content_block_stop","index":0}
    {"type":"message_delta","delta":{"stop_reason":"end_turn"},"usage":{"output_tokens":10}}
    {"type":"message_stop"}

OpenAI Chat Completion Chunks (output):
    {"choices":[{"index":0,"delta":{"role":"assistant"},"finish_reason":null}]}
    {"choices":[{"index":0,"delta":{"content":"Hello"},"finish_reason":null}]}
    {"choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}

The ``data: [DONE]`` sentinel is appended by the HTTP layer once the chunk
sequence is exhausted.
"""

import time
import uuid
from enum import Enum
from typing import Any, AsyncIterator, Mapping, Optional

from ..core.exceptions import BackendError
from ..types import ChatCompletionChunk, Delta

# message_stop carries no stop_reason, so the terminal chunk always says "stop".
STREAM_FINISH_REASON = "stop"


class StreamEventKind(Enum):
    """Closed classification of backend stream events."""

    MESSAGE_START = "message_start"
    CONTENT_BLOCK_DELTA = "content_block_delta"
    MESSAGE_STOP = "message_stop"
    ERROR = "error"
    IGNORED = "ignored"


class StreamState(Enum):
    AWAITING_START = "awaiting_start"
    STREAMING = "streaming"
    DONE = "done"


def classify_event(event: Mapping[str, Any]) -> StreamEventKind:
    """Map a backend event to its kind; unknown types are IGNORED."""
    event_type = event.get("type")
    for kind in StreamEventKind:
        if kind is not StreamEventKind.IGNORED and kind.value == event_type:
            return kind
    return StreamEventKind.IGNORED


def new_chunk_id() -> str:
    """Generate the id shared by every chunk of one streamed response."""
    return f"chatcmpl-{uuid.uuid4()}"


def _text_delta(event: Mapping[str, Any]) -> Optional[str]:
    delta = event.get("delta") or {}
    if delta.get("type") != "text_delta":
        return None
    text = delta.get("text")
    if isinstance(text, str) and text:
        return text
    return None


def _build_chunk(
    message_id: str,
    model: str,
    delta: Delta,
    finish_reason: Optional[str] = None,
) -> ChatCompletionChunk:
    return {
        "id": message_id,
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "model": model,
        "choices": [
            {
                "index": 0,
                "delta": delta,
                "finish_reason": finish_reason,
            }
        ],
    }


def stream_event_to_chunk(
    event: Mapping[str, Any],
    model: str,
    message_id: str,
) -> Optional[ChatCompletionChunk]:
    """Convert a single backend stream event to an OpenAI chunk.

    Stateless; ordering is enforced by ``MessagesToChatStreamAdapter``.

    Returns:
        The chunk, or None when the event produces no output
    """
    kind = classify_event(event)

    if kind is StreamEventKind.MESSAGE_START:
        return _build_chunk(message_id, model, {"role": "assistant"})

    if kind is StreamEventKind.CONTENT_BLOCK_DELTA:
        text = _text_delta(event)
        if text is None:
            return None
        return _build_chunk(message_id, model, {"content": text})

    if kind is StreamEventKind.MESSAGE_STOP:
        return _build_chunk(message_id, model, {}, STREAM_FINISH_REASON)

    return None


def backend_error_from_event(event: Mapping[str, Any]) -> BackendError:
    """Build the BackendError reported by an in-band ``error`` stream event."""
    error = event.get("error") or {}
    message = error.get("message") if isinstance(error, Mapping) else None
    error_type = error.get("type", "unknown") if isinstance(error, Mapping) else "unknown"
    return BackendError(f"Backend stream error: {message or error} (type={error_type})")


class MessagesToChatStreamAdapter:
    """Reassembles an Anthropic Messages event stream into OpenAI chunks.

    State machine, one instance per response:
    - AWAITING_START: message_start emits the role chunk -> STREAMING.
      Anything else (including early deltas) is ignored.
    - STREAMING: non-empty text deltas emit content chunks; message_stop
      emits the terminal chunk -> DONE; everything else is absorbed.
    - DONE: terminal, nothing is emitted.

    Error events raise BackendError in any non-terminal state.
    """

    def __init__(self, message_id: str, model: str):
        """Initialize the stream adapter.

        Args:
            message_id: Chunk id reused for the whole response
            model: Model name echoed in every chunk
        """
        self.message_id = message_id
        self.model = model
        self.state = StreamState.AWAITING_START

    def process_event(self, event: Mapping[str, Any]) -> Optional[ChatCompletionChunk]:
        """Advance the state machine by one event.

        Raises:
            BackendError: If the backend reports an error event
        """
        if self.state is StreamState.DONE:
            return None

        kind = classify_event(event)

        if kind is StreamEventKind.ERROR:
            raise backend_error_from_event(event)

        if self.state is StreamState.AWAITING_START:
            if kind is not StreamEventKind.MESSAGE_START:
                return None
            self.state = StreamState.STREAMING
            return stream_event_to_chunk(event, self.model, self.message_id)

        if kind is StreamEventKind.MESSAGE_START:
            return None

        chunk = stream_event_to_chunk(event, self.model, self.message_id)
        if kind is StreamEventKind.MESSAGE_STOP:
            self.state = StreamState.DONE
        return chunk

    async def adapt_stream(
        self,
        events: AsyncIterator[Mapping[str, Any]],
    ) -> AsyncIterator[ChatCompletionChunk]:
        """Transform backend events into OpenAI chunks, one at a time.

        The source is pulled only as fast as chunks are consumed. When the
        consumer closes this generator early, or the stream is done, the
        source iterator is closed so the backend connection is released.

        Args:
            events: Decoded Anthropic Messages stream events

        Yields:
            OpenAI chat completion chunks
        """
        try:
            async for event in events:
                chunk = self.process_event(event)
                if chunk is not None:
                    yield chunk
                if self.state is StreamState.DONE:
                    break
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()


async def adapt_messages_stream_to_chat(
    events: AsyncIterator[Mapping[str, Any]],
    model: str,
    message_id: Optional[str] = None,
) -> AsyncIterator[ChatCompletionChunk]:
    """Convenience function to adapt a Messages event stream to OpenAI chunks.

    Args:
        events: Decoded Anthropic Messages stream events
        model: Requested model name
        message_id: Chunk id; generated once when omitted

    Yields:
        OpenAI chat completion chunks
    """
    adapter = MessagesToChatStreamAdapter(message_id or new_chunk_id(), model)
    async for chunk in adapter.adapt_stream(events):
        yield chunk
