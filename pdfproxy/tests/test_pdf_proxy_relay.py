import httpx

from pdfproxy.adapters.pdf_proxy.relay import error_response, map_upstream_failure
from pdfproxy.core.errors import InvalidInputError, UpstreamTransportError
from pdfproxy.util.logger import get_request_logger

_TARGET_URL = "https://files.example.com/a.pdf"
_LOG = get_request_logger("abc123", _TARGET_URL)


def _status_error(response: httpx.Response) -> httpx.HTTPStatusError:
    return httpx.HTTPStatusError("upstream said no", request=response.request, response=response)


def test_structured_failure_is_relayed_with_cors_headers():
    request = httpx.Request("GET", _TARGET_URL)
    failed = httpx.Response(
        503,
        headers={"retry-after": "30", "content-type": "text/plain"},
        content=b"maintenance",
        request=request,
    )

    response = map_upstream_failure(_status_error(failed), log=_LOG)

    assert response.status_code == 503
    assert response.body == b"maintenance"
    assert response.headers["retry-after"] == "30"
    assert response.headers["content-length"] == str(len(b"maintenance"))
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-expose-headers"] == "Accept-Ranges, Content-Length, Content-Range"


def test_structured_failure_without_body_uses_fallback_message():
    request = httpx.Request("GET", _TARGET_URL)
    failed = httpx.Response(500, request=request)

    response = map_upstream_failure(_status_error(failed), log=_LOG)

    assert response.status_code == 500
    assert response.body == b"Upstream error"


def test_structured_failure_with_unread_stream_uses_fallback_message():
    request = httpx.Request("GET", _TARGET_URL)
    failed = httpx.Response(403, request=request, stream=httpx.ByteStream(b"never read"))

    response = map_upstream_failure(_status_error(failed), log=_LOG)

    assert response.status_code == 403
    assert response.body == b"Upstream error"


def test_transport_failure_maps_to_502():
    request = httpx.Request("GET", _TARGET_URL)
    exc = httpx.ConnectTimeout("timed out", request=request)

    response = map_upstream_failure(exc, log=_LOG)

    assert response.status_code == 502
    assert response.body == b"Failed to reach upstream resource"
    assert response.headers["content-type"].startswith("text/plain")


def test_error_response_uses_error_status_and_message():
    response = error_response(InvalidInputError("Unsupported protocol"))
    assert response.status_code == 400
    assert response.body == b"Unsupported protocol"

    response = error_response(UpstreamTransportError())
    assert response.status_code == 502
    assert response.body == b"Failed to reach upstream resource"
