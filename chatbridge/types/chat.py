"""Types for chat representation on both sides of the bridge.

Types are separated into:
- OpenAI-compatible types: what callers send and receive
- Anthropic types: what the Messages backend accepts and returns

All of them describe plain JSON-shaped dicts; nothing here validates.
"""

from typing import Any
from typing_extensions import TypedDict


# =============================================================================
# OpenAI-Compatible Types
# =============================================================================


class ChatMessage(TypedDict, total=False):
    """A message in a chat conversation (OpenAI format).

    Attributes:
        role: "system", "user" or "assistant".
        content: Text content of the message.
    """
    role: str
    content: str


class ChatCompletionRequest(TypedDict, total=False):
    """A chat completions request (OpenAI format).

    Attributes:
        model: Requested model name.
        messages: Conversation in order.
        max_tokens: Maximum tokens to generate.
        temperature: Sampling temperature.
        top_p: Nucleus sampling mass.
        stop: A single stop string or a list of them.
        stream: Whether the caller wants an SSE stream.
    """
    model: str
    messages: list[ChatMessage]
    max_tokens: int | None
    temperature: float | None
    top_p: float | None
    stop: str | list[str] | None
    stream: bool | None


class Delta(TypedDict, total=False):
    """A streamed delta of a choice (OpenAI format).

    The first chunk of a stream carries only ``role``; content chunks carry
    only ``content``; the terminal chunk carries neither.
    """
    role: str
    content: str


class Choice(TypedDict, total=False):
    """A choice in a chat completion response (OpenAI format).

    Attributes:
        index: Always 0; the bridge never produces more than one choice.
        delta: The incremental content for streaming responses.
        message: The complete message for non-streaming responses.
        finish_reason: "stop", "length", "content_filter" or None while
            a stream is still producing content.
    """
    index: int
    delta: Delta
    message: ChatMessage
    finish_reason: str | None


class Usage(TypedDict, total=False):
    """Token usage information (OpenAI format)."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionChunk(TypedDict, total=False):
    """A streamed chunk of a chat completion response (OpenAI format).

    Attributes:
        id: Identifier shared by every chunk of one response.
        object: Always "chat.completion.chunk".
        created: Unix timestamp of when the chunk was created.
        model: The model name the caller asked for.
        choices: Single-element list of choice deltas.
    """
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]


class ChatCompletionResponse(TypedDict, total=False):
    """A complete (non-streaming) chat completion response (OpenAI format)."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage


# =============================================================================
# Anthropic Types
# =============================================================================


class AnthropicMessage(TypedDict, total=False):
    """One turn in a Messages request. Never carries the system role."""
    role: str
    content: str


class AnthropicMessagesRequest(TypedDict, total=False):
    """A Messages API request body.

    ``stream`` is deliberately absent: streaming is a call mode chosen by
    the backend client, not a field of the translated request.
    """
    model: str
    max_tokens: int
    messages: list[AnthropicMessage]
    system: str
    temperature: float
    top_p: float
    stop_sequences: list[str]


class AnthropicContentBlock(TypedDict, total=False):
    """A content block in a Messages response.

    Attributes:
        type: Block type; only "text" blocks are translated.
        text: Text content for "text" blocks.
    """
    type: str
    text: str


class AnthropicUsage(TypedDict, total=False):
    """Token usage in Anthropic format."""
    input_tokens: int
    output_tokens: int


class AnthropicResponse(TypedDict, total=False):
    """A complete (non-streaming) Messages API response."""
    id: str
    type: str
    role: str
    model: str
    content: list[AnthropicContentBlock]
    stop_reason: str | None
    stop_sequence: str | None
    usage: AnthropicUsage


class AnthropicStreamEvent(TypedDict, total=False):
    """A streaming event from the Messages API.

    Attributes:
        type: Event tag: "message_start", "content_block_start",
            "content_block_delta", "content_block_stop", "message_delta",
            "message_stop", "ping" or "error".
        message: Message envelope (message_start).
        index: Content block index (content_block_* events).
        delta: Delta payload (content_block_delta, message_delta).
        usage: Usage update (message_delta).
        error: Error payload (error).
    """
    type: str
    message: dict[str, Any]
    index: int
    delta: dict[str, Any]
    usage: dict[str, Any]
    error: dict[str, Any]
