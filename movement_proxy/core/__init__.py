"""Core module initialization."""

from .bridge import UpstreamBridge
from .exceptions import (
    ConfigurationError,
    InvalidRequestError,
    ProxyError,
    UpstreamStatusError,
)
from .framing import LineKind, UpstreamLine, parse_upstream_line
from .stream_adapter import DONE_FRAME, UpstreamToChatStreamAdapter
from .translator import aggregate_text_deltas, build_chat_completion
from .upstream import (
    DEFAULT_DISGUISE_HEADERS,
    Upstream,
    build_upstream_body,
    build_upstream_headers,
    format_httpx_error,
    parse_upstream,
)

__all__ = [
    "ConfigurationError",
    "DEFAULT_DISGUISE_HEADERS",
    "DONE_FRAME",
    "InvalidRequestError",
    "LineKind",
    "ProxyError",
    "Upstream",
    "UpstreamBridge",
    "UpstreamLine",
    "UpstreamStatusError",
    "UpstreamToChatStreamAdapter",
    "aggregate_text_deltas",
    "build_chat_completion",
    "build_upstream_body",
    "build_upstream_headers",
    "format_httpx_error",
    "parse_upstream",
    "parse_upstream_line",
]
