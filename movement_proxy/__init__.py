"""movement-proxy - OpenAI-compatible front for the Movement Labs chat API

Translates OpenAI chat-completion requests into calls to the upstream chat
endpoint and re-frames its line-tagged data stream as either a single
``chat.completion`` object or an SSE stream of ``chat.completion.chunk``
events.

This module provides:
- UpstreamBridge: issues the upstream call and selects the response mode
- UpstreamToChatStreamAdapter: incremental line-to-SSE translation
- Configuration loading and logging setup

Example:
    >>> from movement_proxy.main import app
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from .config_loader import load_config
from .core import (
    Upstream,
    UpstreamBridge,
    UpstreamToChatStreamAdapter,
    aggregate_text_deltas,
    parse_upstream,
)
from .logging import logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    "Upstream",
    "UpstreamBridge",
    "UpstreamToChatStreamAdapter",
    "aggregate_text_deltas",
    "load_config",
    "logger",
    "parse_upstream",
    "setup_logging",
]
