"""Non-streaming translation: upstream body -> OpenAI chat completion."""

import logging
import time
import uuid

from ..types.chat import ChatCompletion
from .framing import LINE_SEPARATOR, log_skipped_line, parse_upstream_line

logger = logging.getLogger("movement-proxy")


def generate_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4()}"


def join_surrogate_pairs(text: str) -> str:
    """Recombine surrogate pairs that arrived in separate deltas.

    A surrogate left without its partner becomes U+FFFD.
    """
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def aggregate_text_deltas(body: str) -> str:
    """Concatenate the text deltas of a fully received upstream body, in line order."""
    parts: list[str] = []
    for line in body.split(LINE_SEPARATOR):
        parsed = parse_upstream_line(line)
        if parsed.is_text:
            parts.append(parsed.text)
        else:
            log_skipped_line(parsed, "non-stream")
    return join_surrogate_pairs("".join(parts))


def build_chat_completion(content: str, model_id: str) -> ChatCompletion:
    """Wrap aggregated text in a chat.completion object.

    The upstream reports no token counts, so usage is zero-valued.
    """
    return {
        "id": generate_completion_id(),
        "object": "chat.completion",
        "created": int(time.time()),
        "model": model_id,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
        },
    }


def translate_upstream_body(body: str, model_id: str) -> ChatCompletion:
    """Translate a complete upstream body into one chat completion."""
    content = aggregate_text_deltas(body)
    logger.debug("Aggregated %d characters from upstream body", len(content))
    return build_chat_completion(content, model_id)
