"""Per-request upstream clients, with in-process transports for tests."""

import logging
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("movement-proxy")

# netloc -> transport that replaces the network for that upstream
_TRANSPORTS: dict[str, httpx.AsyncBaseTransport] = {}


def register_upstream_transport(url: str, transport: httpx.AsyncBaseTransport) -> None:
    """Route every upstream call to the netloc of ``url`` through ``transport``."""
    netloc = urlparse(url).netloc.lower()
    if not netloc:
        raise ValueError(f"upstream URL has no host: {url!r}")
    _TRANSPORTS[netloc] = transport


def clear_upstream_transports() -> None:
    _TRANSPORTS.clear()


def open_upstream_client(url: str, timeout: httpx.Timeout) -> httpx.AsyncClient:
    """Create the client owned by one chat request."""
    transport = _TRANSPORTS.get(urlparse(url).netloc.lower())
    if transport is not None:
        logger.debug("Using registered transport for %s", url)
    return httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)
