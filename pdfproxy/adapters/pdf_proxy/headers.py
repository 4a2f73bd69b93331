"""Header rules of the pdf proxy: what goes upstream and what goes back."""

from __future__ import annotations

from typing import Iterable, Mapping

from pdfproxy.config.settings import settings

FORWARD_HEADER_NAMES = (
    "range",
    "accept",
    "accept-encoding",
    "user-agent",
    "referer",
    "accept-language",
)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

PREFLIGHT_CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Range",
    "Access-Control-Allow-Methods": "GET,HEAD,OPTIONS",
}

RESPONSE_CORS_HEADERS: dict[str, str] = {
    **PREFLIGHT_CORS_HEADERS,
    "Access-Control-Expose-Headers": "Accept-Ranges, Content-Length, Content-Range",
}


def build_forward_headers(
    incoming: Mapping[str, str] | Iterable[tuple[str, str]],
    *,
    mount_path: str | None = None,
    default_accept: str | None = None,
) -> dict[str, str]:
    """Build the outbound header set from the fixed allowlist.

    Lookup is case-insensitive. A missing accept gets the pdf-preferring
    default and a referer pointing back at the proxy itself is dropped.
    """

    items = incoming.items() if isinstance(incoming, Mapping) else incoming
    lowered: dict[str, str] = {}
    for key, value in items:
        lowered.setdefault(key.lower(), value)

    headers: dict[str, str] = {}
    for name in FORWARD_HEADER_NAMES:
        value = lowered.get(name)
        if value is not None:
            headers[name] = value

    if not headers.get("accept"):
        headers["accept"] = default_accept or settings.default_accept

    own_path = mount_path or settings.mount_path
    referer = headers.get("referer")
    if referer and own_path and own_path in referer:
        del headers["referer"]
    return headers


def relayable_header_items(raw_items: Iterable[tuple[bytes, bytes]]) -> list[tuple[bytes, bytes]]:
    """Upstream response headers to copy to the client, as raw ASGI pairs.

    Values are kept byte for byte and repeated headers stay repeated; only
    hop-by-hop headers of the upstream connection are left out, including
    any header the upstream names in its `Connection` header.
    """

    items = [(key.decode("latin-1").lower(), value) for key, value in raw_items]
    dropped = set(HOP_BY_HOP_HEADERS)
    for name, value in items:
        if name == "connection":
            dropped.update(token.strip().lower() for token in value.decode("latin-1").split(",") if token.strip())

    out: list[tuple[bytes, bytes]] = []
    for name, value in items:
        if name in dropped:
            continue
        out.append((name.encode("latin-1"), value))
    return out
