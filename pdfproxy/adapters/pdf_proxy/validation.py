"""Request validation for the pdf proxy endpoint."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

import httpx

from pdfproxy.core.errors import InvalidInputError, MethodNotAllowedError
from pdfproxy.core.models import ParsedTarget, ProxyRequest

ALLOWED_METHODS = ("GET", "HEAD", "OPTIONS")
ALLOWED_SCHEMES = frozenset({"http", "https"})

_WHITESPACE_RE = re.compile(r"\s")
# http(s) urls as a browser reads them: any run of slashes or backslashes after the scheme
_SPECIAL_SCHEME_RE = re.compile(r"^(https?):[\\/]*(.*)$", re.IGNORECASE | re.DOTALL)
_QUERY_OR_FRAGMENT_RE = re.compile(r"[?#]")


def is_preflight(method: str) -> bool:
    return method.upper() == "OPTIONS"


def _normalize_special_scheme(value: str) -> str:
    """Rewrite browser-tolerated http(s) spellings (missing `//`, backslashes) as `scheme://host/...`."""

    matched = _SPECIAL_SCHEME_RE.match(value)
    if not matched:
        return value
    scheme, rest = matched.group(1).lower(), matched.group(2)
    split_at = _QUERY_OR_FRAGMENT_RE.search(rest)
    head, tail = (rest[: split_at.start()], rest[split_at.start() :]) if split_at else (rest, "")
    head = head.replace("\\", "/")
    return f"{scheme}://{head}{tail}"


def parse_target_url(raw: str) -> ParsedTarget:
    """Parse an absolute http(s) url or raise InvalidInputError."""

    value = _normalize_special_scheme(raw.strip())
    try:
        parts = urlsplit(value)
        # accessing port validates it
        _ = parts.port
    except ValueError as exc:
        raise InvalidInputError("Invalid url") from exc

    scheme = parts.scheme.lower()
    if not scheme:
        raise InvalidInputError("Invalid url")
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidInputError("Unsupported protocol")

    host = parts.hostname or ""
    if not host or _WHITESPACE_RE.search(parts.netloc):
        raise InvalidInputError("Invalid url")

    href = parts.geturl()
    # the fetcher must be able to build exactly this url (idna host, printable path)
    try:
        httpx.URL(href)
    except httpx.InvalidURL as exc:
        raise InvalidInputError("Invalid url") from exc
    return ParsedTarget(href=href, scheme=scheme, host=host)


def validate_request(proxy_request: ProxyRequest) -> ParsedTarget:
    """Check method and target url of a non-preflight request.

    Raises MethodNotAllowedError or InvalidInputError; on success returns the
    parsed target. OPTIONS is answered before this is called.
    """

    if proxy_request.method.upper() not in ALLOWED_METHODS:
        raise MethodNotAllowedError()
    if not proxy_request.target_url:
        raise InvalidInputError("Missing url query parameter")
    return parse_target_url(proxy_request.target_url)
