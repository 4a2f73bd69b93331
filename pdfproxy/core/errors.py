"""Project error hierarchy.

Each error knows the status and plain-text message the client receives.
"""

from __future__ import annotations


class PdfProxyError(Exception):
    """Base error."""

    status_code = 500
    default_message = "Internal proxy error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(PdfProxyError):
    """Raised when the url query parameter is missing, malformed or not http(s)."""

    status_code = 400
    default_message = "Invalid url"


class MethodNotAllowedError(PdfProxyError):
    """Raised for any method other than GET, HEAD and OPTIONS."""

    status_code = 405
    default_message = "Method not allowed"


class UpstreamTransportError(PdfProxyError):
    """Raised when upstream cannot be reached and there is no response to relay."""

    status_code = 502
    default_message = "Failed to reach upstream resource"


class ProxyStreamError(PdfProxyError):
    """Raised when the upstream body fails while it is being relayed."""

    status_code = 502
    default_message = "Proxy stream error"
