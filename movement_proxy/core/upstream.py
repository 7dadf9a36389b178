"""Upstream configuration and request shaping."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import httpx

from .exceptions import ConfigurationError

logger = logging.getLogger("movement-proxy")

DEFAULT_UPSTREAM_URL = "https://www.movementlabs.ai/api/chat"
DEFAULT_TIMEOUT = 60
DEFAULT_MODEL_ID = "movement"
DEFAULT_OWNED_BY = "movement-labs"

# Headers the upstream's web front-end sends. Requests without them are
# rejected with 403 by the upstream's anti-automation check.
DEFAULT_DISGUISE_HEADERS: dict[str, str] = {
    "Content-Type": "application/json",
    "x-message-count": "0",
    "Referer": "https://www.movementlabs.ai/",
    "Origin": "https://www.movementlabs.ai",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36"
    ),
}


@dataclass
class Upstream:
    """The single upstream chat service and the model id it is served as."""

    url: str = DEFAULT_UPSTREAM_URL
    timeout: Optional[float] = DEFAULT_TIMEOUT
    headers: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DISGUISE_HEADERS)
    )
    model_id: str = DEFAULT_MODEL_ID
    owned_by: str = DEFAULT_OWNED_BY

    def build_timeout(self) -> httpx.Timeout:
        """Connection-level timeouts only; body reads may take as long as the upstream needs."""
        timeout = self.timeout or DEFAULT_TIMEOUT
        return httpx.Timeout(connect=timeout, read=None, write=timeout, pool=timeout)


def parse_upstream(config: Mapping[str, Any]) -> Upstream:
    """Build the Upstream from the loaded configuration, applying defaults."""
    upstream_cfg = config.get("upstream") or {}
    model_cfg = config.get("model") or {}
    if not isinstance(upstream_cfg, Mapping):
        raise ConfigurationError("'upstream' must be a mapping")
    if not isinstance(model_cfg, Mapping):
        raise ConfigurationError("'model' must be a mapping")

    url = str(upstream_cfg.get("url") or DEFAULT_UPSTREAM_URL).strip()

    raw_timeout = upstream_cfg.get("timeout", DEFAULT_TIMEOUT)
    try:
        timeout = float(raw_timeout) if raw_timeout is not None else None
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"upstream.timeout must be a number, got {raw_timeout!r}"
        ) from exc

    raw_headers = upstream_cfg.get("headers")
    if raw_headers is None:
        headers = dict(DEFAULT_DISGUISE_HEADERS)
    elif isinstance(raw_headers, Mapping):
        headers = {str(key): str(value) for key, value in raw_headers.items()}
        logger.info("Using %d upstream headers from configuration", len(headers))
    else:
        raise ConfigurationError("upstream.headers must be a mapping")

    return Upstream(
        url=url,
        timeout=timeout,
        headers=headers,
        model_id=str(model_cfg.get("id") or DEFAULT_MODEL_ID),
        owned_by=str(model_cfg.get("owned_by") or DEFAULT_OWNED_BY),
    )


def build_upstream_headers(upstream: Upstream) -> dict[str, str]:
    """Build the outbound header set for an upstream call.

    This is the only place the disguise headers are attached; the upstream
    body is always JSON, so a Content-Type is guaranteed even when the
    configured set omits it.
    """
    headers = dict(upstream.headers)
    if not any(key.lower() == "content-type" for key in headers):
        headers["Content-Type"] = "application/json"
    return headers


def build_upstream_body(messages: Sequence[Any]) -> bytes:
    """Serialize the upstream payload. Only the messages are forwarded."""
    return json.dumps({"messages": list(messages)}).encode("utf-8")


def format_httpx_error(exc: Any, upstream: Upstream) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    try:
        request = exc.request
    except (AttributeError, RuntimeError):
        request = None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")
    else:
        parts.append(f"url={upstream.url}")

    if isinstance(exc, httpx.TimeoutException):
        parts.append(f"timeout={upstream.timeout or DEFAULT_TIMEOUT}s")

    return "; ".join(parts)
