"""Type definitions for the bridge."""

from .chat import (
    AnthropicContentBlock,
    AnthropicMessage,
    AnthropicMessagesRequest,
    AnthropicResponse,
    AnthropicStreamEvent,
    AnthropicUsage,
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    Choice,
    Delta,
    Usage,
)

__all__ = [
    "AnthropicContentBlock",
    "AnthropicMessage",
    "AnthropicMessagesRequest",
    "AnthropicResponse",
    "AnthropicStreamEvent",
    "AnthropicUsage",
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "Choice",
    "Delta",
    "Usage",
]
