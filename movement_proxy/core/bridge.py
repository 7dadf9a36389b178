"""Forwarding of chat requests to the upstream and selection of the response mode."""

import asyncio
import logging
from typing import Any, Sequence

from fastapi import Response
from fastapi.responses import JSONResponse, StreamingResponse

from .exceptions import UpstreamStatusError
from .stream_adapter import UpstreamToChatStreamAdapter
from .translator import translate_upstream_body
from .upstream import Upstream, build_upstream_body, build_upstream_headers
from .upstream_transport import open_upstream_client

logger = logging.getLogger("movement-proxy")

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class UpstreamBridge:
    """Issues exactly one upstream call per chat request and re-frames the answer."""

    def __init__(self, upstream: Upstream) -> None:
        self.upstream = upstream

    async def forward_chat(self, messages: Sequence[Any], is_stream: bool) -> Response:
        """Send ``messages`` upstream and translate the reply.

        Raises:
            UpstreamStatusError: the upstream answered with a non-2xx status.
            httpx.HTTPError: the upstream could not be reached.
        """
        url = self.upstream.url
        body = build_upstream_body(messages)
        headers = build_upstream_headers(self.upstream)
        logger.info(
            "Forwarding %d messages to %s, stream=%s", len(messages), url, is_stream
        )

        client = open_upstream_client(url, self.upstream.build_timeout())
        try:
            request = client.build_request("POST", url, headers=headers, content=body)
            resp = await client.send(request, stream=True)
        except Exception as exc:
            logger.error(
                f"Failed to send request to {url}: {exc} (type: {exc.__class__.__name__})"
            )
            await client.aclose()
            raise

        stream_closed = False

        async def close_stream() -> None:
            nonlocal stream_closed
            if stream_closed:
                return
            stream_closed = True
            logger.debug(f"Closing upstream response for {url}")
            await resp.aclose()
            await client.aclose()

        if not resp.is_success:
            try:
                data = await resp.aread()
            finally:
                await close_stream()
            error_body = data.decode("utf-8", errors="replace")
            logger.error(f"Upstream API Error: {resp.status_code} {error_body}")
            raise UpstreamStatusError(resp.status_code, error_body)

        if not is_stream:
            try:
                data = await resp.aread()
            finally:
                await close_stream()
            logger.debug(f"Received {len(data)} bytes from {url}")
            completion = translate_upstream_body(
                data.decode("utf-8", errors="replace"), self.upstream.model_id
            )
            return JSONResponse(content=completion)

        adapter = UpstreamToChatStreamAdapter(self.upstream.model_id)
        logger.info(f"Streaming response {adapter.completion_id} from {url}")

        async def iterator():
            try:
                async for frame in adapter.adapt_stream(resp.aiter_bytes()):
                    yield frame
            except asyncio.CancelledError:
                logger.info(f"Stream {adapter.completion_id} cancelled by client")
                raise
            finally:
                await close_stream()

        return StreamingResponse(
            iterator(),
            headers=dict(STREAM_HEADERS),
            media_type="text/event-stream",
        )
