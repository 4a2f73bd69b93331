"""
Outbound side of the pdf proxy: shared HTTP client and streaming fetch.
"""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack

import httpx

from pdfproxy.config.settings import settings
from pdfproxy.core.models import ParsedTarget
from pdfproxy.util.logger import RequestLogAdapter

_upstream_async_client: httpx.AsyncClient | None = None
_upstream_client_lock: asyncio.Lock | None = None


def _upstream_http_limits() -> httpx.Limits:
    return httpx.Limits(
        max_connections=max(10, int(settings.upstream_max_connections)),
        max_keepalive_connections=max(5, int(settings.upstream_max_keepalive_connections)),
    )


def _upstream_http_timeout() -> httpx.Timeout:
    timeout = float(settings.upstream_timeout_seconds)
    # pool wait longer than I/O timeout so bursts of range requests queue instead of failing
    pool_timeout = max(timeout + 5.0, timeout * 2.0)
    return httpx.Timeout(connect=timeout, read=timeout, write=timeout, pool=pool_timeout)


async def _get_upstream_async_client() -> httpx.AsyncClient:
    global _upstream_async_client, _upstream_client_lock
    if _upstream_async_client is not None:
        return _upstream_async_client
    if _upstream_client_lock is None:
        _upstream_client_lock = asyncio.Lock()
    async with _upstream_client_lock:
        if _upstream_async_client is None:
            _upstream_async_client = httpx.AsyncClient(
                follow_redirects=settings.upstream_follow_redirects,
                http2=False,
                timeout=_upstream_http_timeout(),
                limits=_upstream_http_limits(),
            )
    return _upstream_async_client


async def close_upstream_async_client() -> None:
    global _upstream_async_client
    if _upstream_async_client is not None:
        await _upstream_async_client.aclose()
        _upstream_async_client = None


def _outbound_headers(forward_headers: dict[str, str]) -> dict[str, bytes]:
    headers = dict(forward_headers)
    # without this httpx would advertise its own encodings
    headers.setdefault("accept-encoding", "identity")
    # values arrived as latin-1 decoded bytes; send those exact bytes back out
    return {name: value.encode("latin-1") for name, value in headers.items()}


async def open_upstream_stream(
    *,
    target: ParsedTarget,
    method: str,
    forward_headers: dict[str, str],
    log: RequestLogAdapter,
) -> tuple[httpx.Response, AsyncExitStack]:
    """Send the request and return once upstream response headers arrive.

    Every status code is a valid response here; only transport failures
    raise (httpx.HTTPError). The caller owns the returned exit stack and
    must close it to release the upstream connection.
    """

    log.info("pdf proxy fetch method=%s", method)
    client = await _get_upstream_async_client()
    exit_stack = AsyncExitStack()
    try:
        upstream_response = await exit_stack.enter_async_context(
            client.stream(
                method,
                target.href,
                headers=_outbound_headers(forward_headers),
            )
        )
    except BaseException:
        await exit_stack.aclose()
        raise

    log.info(
        "pdf proxy upstream status=%s content_type=%s",
        upstream_response.status_code,
        upstream_response.headers.get("content-type"),
    )
    return upstream_response, exit_stack
