"""Cross-origin pdf proxy endpoint with range support."""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import Response

from pdfproxy.adapters.pdf_proxy.headers import build_forward_headers
from pdfproxy.adapters.pdf_proxy.relay import (
    error_response,
    map_upstream_failure,
    preflight_response,
    relay_upstream_response,
)
from pdfproxy.adapters.pdf_proxy.upstream import open_upstream_stream
from pdfproxy.adapters.pdf_proxy.validation import is_preflight, validate_request
from pdfproxy.config.settings import settings
from pdfproxy.core.errors import InvalidInputError, PdfProxyError
from pdfproxy.core.models import ProxyRequest, new_request_id
from pdfproxy.util.logger import get_request_logger

router = APIRouter()

_ALL_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
_TARGET_URL_PARAM = "url"


def _proxy_request_from(request: Request) -> ProxyRequest:
    # a repeated url parameter is as unusable as a missing one
    values = request.query_params.getlist(_TARGET_URL_PARAM)
    target_url = values[0] if len(values) == 1 else None
    return ProxyRequest(
        method=request.method.upper(),
        target_url=target_url,
        headers=list(request.headers.items()),
    )


@router.api_route("", methods=list(_ALL_METHODS))
@router.api_route("/{proxy_path:path}", methods=list(_ALL_METHODS))
async def proxy_pdf(request: Request, proxy_path: str = "") -> Response:
    del proxy_path

    if is_preflight(request.method):
        return preflight_response()

    request_id = new_request_id()
    proxy_request = _proxy_request_from(request)
    try:
        target = validate_request(proxy_request)
    except PdfProxyError as exc:
        get_request_logger(request_id, proxy_request.target_url).info(
            "pdf proxy request rejected method=%s status=%s reason=%s",
            proxy_request.method,
            exc.status_code,
            exc.message,
        )
        return error_response(exc)

    log = get_request_logger(request_id, target.href)
    forward_headers = build_forward_headers(proxy_request.headers, mount_path=settings.mount_path)

    try:
        upstream_response, exit_stack = await open_upstream_stream(
            target=target,
            method=proxy_request.method,
            forward_headers=forward_headers,
            log=log,
        )
    except httpx.InvalidURL as exc:
        log.warning("pdf proxy target rejected by http client error=%s", exc)
        return error_response(InvalidInputError("Invalid url"))
    except httpx.HTTPError as exc:
        return map_upstream_failure(exc, log=log)

    return await relay_upstream_response(
        upstream_response=upstream_response,
        exit_stack=exit_stack,
        method=proxy_request.method,
        log=log,
    )
