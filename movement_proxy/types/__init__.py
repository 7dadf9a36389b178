"""Type definitions for the proxy's OpenAI-compatible payloads."""

from .chat import (
    AssistantMessage,
    ChatCompletion,
    ChatCompletionChunk,
    Choice,
    Delta,
    ModelCard,
    ModelList,
    StreamChoice,
    Usage,
)

__all__ = [
    "AssistantMessage",
    "ChatCompletion",
    "ChatCompletionChunk",
    "Choice",
    "Delta",
    "ModelCard",
    "ModelList",
    "StreamChoice",
    "Usage",
]
