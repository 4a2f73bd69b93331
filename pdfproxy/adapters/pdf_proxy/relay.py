"""Client side of the pdf proxy: relaying upstream responses and mapping failures."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from typing import AsyncGenerator

import httpx
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from pdfproxy.adapters.pdf_proxy.headers import (
    PREFLIGHT_CORS_HEADERS,
    RESPONSE_CORS_HEADERS,
    relayable_header_items,
)
from pdfproxy.core.errors import PdfProxyError, ProxyStreamError, UpstreamTransportError
from pdfproxy.util.logger import RequestLogAdapter

_STRUCTURED_FAILURE_FALLBACK_BODY = b"Upstream error"
# the failed body is already decoded, so its framing headers no longer apply
_STRUCTURED_FAILURE_DROPPED_HEADERS = frozenset({b"content-length", b"content-encoding"})


def preflight_response() -> Response:
    return Response(status_code=204, headers=PREFLIGHT_CORS_HEADERS)


def error_response(exc: PdfProxyError) -> Response:
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def _apply_upstream_headers(response: Response, raw_items: list[tuple[bytes, bytes]]) -> None:
    # set after copying so upstream can never suppress them
    response.raw_headers = list(raw_items)
    for key, value in RESPONSE_CORS_HEADERS.items():
        response.headers[key] = value


async def relay_upstream_response(
    *,
    upstream_response: httpx.Response,
    exit_stack: AsyncExitStack,
    method: str,
    log: RequestLogAdapter,
) -> Response:
    raw_items = relayable_header_items(upstream_response.headers.raw)

    if method.upper() == "HEAD":
        await exit_stack.aclose()
        response = Response(status_code=upstream_response.status_code)
        _apply_upstream_headers(response, raw_items)
        return response

    chunks = upstream_response.aiter_raw()
    try:
        first_chunk = await chunks.__anext__()
    except StopAsyncIteration:
        first_chunk = b""
    except httpx.HTTPError as exc:
        await exit_stack.aclose()
        log.warning("pdf proxy stream error before first byte error=%s", _error_detail(exc))
        return error_response(ProxyStreamError())
    except BaseException:
        await exit_stack.aclose()
        raise

    async def _iter_body() -> AsyncGenerator[bytes, None]:
        try:
            if first_chunk:
                yield first_chunk
            async for chunk in chunks:
                if chunk:
                    yield chunk
        except httpx.HTTPError as exc:
            log.warning("pdf proxy stream interrupted error=%s", _error_detail(exc))
            # headers are committed; raising makes the server drop the connection
            raise ProxyStreamError() from exc
        except asyncio.CancelledError:
            log.info("pdf proxy client disconnected")
            raise
        finally:
            await exit_stack.aclose()

    response = StreamingResponse(
        _iter_body(),
        status_code=upstream_response.status_code,
        background=BackgroundTask(exit_stack.aclose),
    )
    _apply_upstream_headers(response, raw_items)
    return response


def map_upstream_failure(exc: httpx.HTTPError, *, log: RequestLogAdapter) -> Response:
    """Turn a failed fetch into a client response.

    A failure that still carries an upstream response is relayed like any
    other response; everything else becomes 502. No retry is attempted.
    """

    failed = exc.response if isinstance(exc, httpx.HTTPStatusError) else None
    if failed is None:
        log.warning("pdf proxy upstream unreachable error=%s", _error_detail(exc))
        return error_response(UpstreamTransportError())

    log.warning("pdf proxy upstream failure status=%s error=%s", failed.status_code, _error_detail(exc))
    try:
        body = failed.content
    except httpx.ResponseNotRead:
        body = b""
    body = body or _STRUCTURED_FAILURE_FALLBACK_BODY

    raw_items = [
        (key, value)
        for key, value in relayable_header_items(failed.headers.raw)
        if key not in _STRUCTURED_FAILURE_DROPPED_HEADERS
    ]
    raw_items.append((b"content-length", str(len(body)).encode("latin-1")))
    response = Response(content=body, status_code=failed.status_code)
    _apply_upstream_headers(response, raw_items)
    return response


def _error_detail(exc: BaseException) -> str:
    return (str(exc) or "").strip() or type(exc).__name__
