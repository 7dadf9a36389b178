"""Upstream line framing.

The upstream speaks the AI SDK data-stream format: one event per line,
each line tagged with a short prefix followed by a JSON payload::

    0:"Hel"
    0:"lo"
    e:{"finishReason":"stop"}

Only ``0:`` lines (text deltas) are translated. Every other prefix is
ignored.
"""

import enum
import json
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("movement-proxy")

TEXT_DELTA_PREFIX = "0:"
LINE_SEPARATOR = "\n"


class LineKind(str, enum.Enum):
    TEXT = "text"
    IGNORED = "ignored"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class UpstreamLine:
    """Outcome of parsing one complete upstream line."""

    kind: LineKind
    raw: str
    text: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_text(self) -> bool:
        return self.kind is LineKind.TEXT


def parse_upstream_line(line: str) -> UpstreamLine:
    """Parse one complete line. Never raises."""
    if not line.startswith(TEXT_DELTA_PREFIX):
        return UpstreamLine(LineKind.IGNORED, line)

    payload = line[len(TEXT_DELTA_PREFIX):]
    try:
        value = json.loads(payload)
    except ValueError as exc:
        return UpstreamLine(LineKind.MALFORMED, line, reason=f"invalid JSON: {exc}")

    if not isinstance(value, str):
        return UpstreamLine(
            LineKind.MALFORMED,
            line,
            reason=f"payload is {type(value).__name__}, expected string",
        )
    return UpstreamLine(LineKind.TEXT, line, text=value)


def log_skipped_line(parsed: UpstreamLine, mode: str) -> None:
    """Apply the skip policy's logging for a line that produced no text."""
    if parsed.kind is LineKind.MALFORMED:
        logger.warning(
            "Ignoring malformed %s line (%s): %s",
            mode,
            parsed.reason,
            _preview(parsed.raw),
        )
    elif parsed.raw:
        logger.debug("Ignoring non-text %s line: %s", mode, _preview(parsed.raw))


def _preview(line: str, limit: int = 200) -> str:
    if len(line) <= limit:
        return line
    return f"{line[:limit]}... ({len(line)} chars)"
