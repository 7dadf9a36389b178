"""Stream adapter for converting the upstream data stream to OpenAI chat SSE.

Upstream (one event per line, chunk boundaries anywhere)::

    0:"Hel"
    0:"lo"
    e:{"finishReason":"stop"}

Downstream::

    data: {"object":"chat.completion.chunk","choices":[{"delta":{"content":"Hel"},...}],...}

    data: {"object":"chat.completion.chunk","choices":[{"delta":{"content":"lo"},...}],...}

    data: [DONE]

A line is only translated once its terminating newline has arrived; the
unterminated tail of the latest chunk is carried over to the next one, so
memory is bounded by the longest line rather than the stream length.
"""

import codecs
import json
import logging
import time
from typing import AsyncIterator, Optional, Union

from ..types.chat import ChatCompletionChunk
from .framing import LINE_SEPARATOR, LineKind, log_skipped_line, parse_upstream_line
from .translator import generate_completion_id

logger = logging.getLogger("movement-proxy")

DONE_FRAME = b"data: [DONE]\n\n"


def encode_sse_frame(payload: ChatCompletionChunk) -> bytes:
    data = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    # Lone surrogates (half of a pair split across deltas) only occur inside
    # JSON strings; backslashreplace writes them as \uXXXX escapes.
    return f"data: {data}\n\n".encode("utf-8", errors="backslashreplace")


class UpstreamToChatStreamAdapter:
    """Incremental translator from upstream lines to chat.completion.chunk events.

    One instance serves exactly one stream. ``feed``/``feed_bytes`` return
    the frames that became available with the chunk; ``finish`` returns the
    frame for a final unterminated line (if complete) and the terminal
    ``[DONE]`` frame, exactly once.
    """

    def __init__(self, model_id: str, completion_id: Optional[str] = None) -> None:
        self.model_id = model_id
        self.completion_id = completion_id or generate_completion_id()
        self.created = int(time.time())

        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._finished = False

        self.emitted_chunks = 0
        self.malformed_lines = 0
        self.ignored_lines = 0

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def pending(self) -> str:
        """The incomplete line currently carried over between chunks."""
        return self._buffer

    def feed_bytes(self, chunk: bytes) -> list[bytes]:
        """Decode a raw chunk (UTF-8 sequences may straddle chunks) and feed it."""
        if not chunk:
            return []
        return self.feed(self._decoder.decode(chunk))

    def feed(self, chunk: str) -> list[bytes]:
        if self._finished:
            raise RuntimeError("stream adapter already finished")
        if not chunk:
            return []

        self._buffer += chunk
        if LINE_SEPARATOR not in chunk:
            return []

        *lines, self._buffer = self._buffer.split(LINE_SEPARATOR)
        frames: list[bytes] = []
        for line in lines:
            frame = self._process_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def finish(self) -> list[bytes]:
        """End the stream: flush the final line, then the terminal frame.

        The upstream may end without a trailing newline. The leftover text is
        translated only when it is a complete text line (a JSON string is not
        valid until its closing quote arrives); a truncated line is dropped.
        Subsequent calls return an empty list.
        """
        if self._finished:
            return []
        self._finished = True

        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        frames: list[bytes] = []
        if tail:
            parsed = parse_upstream_line(tail)
            if parsed.is_text:
                self.emitted_chunks += 1
                frames.append(encode_sse_frame(self._build_chunk(parsed.text)))
            else:
                logger.debug("Discarding incomplete trailing line (%d chars)", len(tail))

        logger.debug(
            "Stream %s finished: %d chunks emitted, %d malformed, %d ignored lines",
            self.completion_id,
            self.emitted_chunks,
            self.malformed_lines,
            self.ignored_lines,
        )
        frames.append(DONE_FRAME)
        return frames

    async def adapt_stream(
        self,
        upstream_chunks: AsyncIterator[Union[bytes, str]],
    ) -> AsyncIterator[bytes]:
        """Translate an upstream chunk iterator into SSE frames as they arrive.

        A failing upstream iterator ends the stream early, but the consumer
        still receives the ``[DONE]`` frame. Errors raised while translating
        a chunk propagate. Cancellation is not intercepted.
        """
        chunks = upstream_chunks.__aiter__()
        while True:
            try:
                chunk = await chunks.__anext__()
            except StopAsyncIteration:
                break
            except Exception as exc:
                logger.error(
                    "Upstream stream failed after %d chunks: %s: %s",
                    self.emitted_chunks,
                    exc.__class__.__name__,
                    exc,
                )
                break

            if isinstance(chunk, str):
                frames = self.feed(chunk)
            else:
                frames = self.feed_bytes(chunk)
            for frame in frames:
                yield frame

        for frame in self.finish():
            yield frame

    def _process_line(self, line: str) -> Optional[bytes]:
        parsed = parse_upstream_line(line)
        if not parsed.is_text:
            if parsed.kind is LineKind.MALFORMED:
                self.malformed_lines += 1
            else:
                self.ignored_lines += 1
            log_skipped_line(parsed, "stream")
            return None

        self.emitted_chunks += 1
        return encode_sse_frame(self._build_chunk(parsed.text))

    def _build_chunk(self, content: str) -> ChatCompletionChunk:
        return {
            "id": self.completion_id,
            "object": "chat.completion.chunk",
            "created": self.created,
            "model": self.model_id,
            "choices": [
                {
                    "index": 0,
                    "delta": {"content": content},
                    "finish_reason": None,
                }
            ],
        }
