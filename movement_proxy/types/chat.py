"""Wire types for the OpenAI-compatible surface served by the proxy.

Only the shapes the proxy actually emits are described here: the full
``chat.completion`` object, the streaming ``chat.completion.chunk`` and
the ``/v1/models`` listing.
"""

from typing import Optional
from typing_extensions import TypedDict


class AssistantMessage(TypedDict):
    role: str
    content: str


class Choice(TypedDict):
    """A choice in a non-streaming completion.

    Attributes:
        index: Always 0; the upstream produces a single answer.
        message: The assistant reply with the aggregated text.
        finish_reason: Always "stop"; the upstream's own finish events are
            not interpreted.
    """
    index: int
    message: AssistantMessage
    finish_reason: str


class Usage(TypedDict):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletion(TypedDict):
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage


class Delta(TypedDict, total=False):
    role: str
    content: str


class StreamChoice(TypedDict):
    index: int
    delta: Delta
    finish_reason: Optional[str]


class ChatCompletionChunk(TypedDict):
    """One streaming event, sent as ``data: <json>\\n\\n``."""
    id: str
    object: str
    created: int
    model: str
    choices: list[StreamChoice]


class ModelCard(TypedDict):
    id: str
    object: str
    created: int
    owned_by: str


class ModelList(TypedDict):
    object: str
    data: list[ModelCard]
