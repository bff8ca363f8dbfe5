# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Outbound request construction.

Pure functions: they compute the target URL and headers of the forwarded
request and leave all I/O to the forwarder.
"""

from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

from .models import OutboundAuthorization

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)


def build_target_url(proxy_url: str, path: str, query: str = "") -> str:
    """Point an inbound path and query at the proxy destination.

    Scheme and authority come from ``proxy_url``; a path in ``proxy_url`` is
    used as a prefix.
    """
    target = urlsplit(proxy_url)
    prefix = target.path.rstrip("/")
    if not path.startswith("/"):
        path = "/" + path
    return urlunsplit((target.scheme, target.netloc, prefix + path, query, ""))


def _connection_tokens(headers: Iterable[Tuple[str, str]]) -> set:
    tokens = set()
    for name, value in headers:
        if name.lower() == "connection":
            tokens.update(token.strip().lower() for token in value.split(",") if token.strip())
    return tokens


def filter_hop_by_hop(headers: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """Drop hop-by-hop headers, including those named in ``Connection``."""
    headers = list(headers)
    dropped = HOP_BY_HOP_HEADERS | _connection_tokens(headers)
    return [(name, value) for name, value in headers if name.lower() not in dropped]


def build_outbound_headers(
    headers: Iterable[Tuple[str, str]],
    authorization: Optional[OutboundAuthorization],
    client_host: Optional[str] = None,
    scheme: str = "http",
) -> List[Tuple[str, str]]:
    """Compute the headers of the forwarded request.

    Every inbound ``Authorization`` header is dropped; the outbound one is
    set only from ``authorization``, so a client credential never reaches
    the backend.

    Args:
        headers: Inbound header pairs
        authorization: Exchanged credential, or None for anonymous requests
        client_host: Address of the inbound client
        scheme: Scheme the inbound request arrived on

    Returns:
        Outbound header pairs
    """
    outbound: List[Tuple[str, str]] = []
    host = None
    forwarded_for = None

    for name, value in filter_hop_by_hop(headers):
        lowered = name.lower()
        if lowered == "host":
            host = value
        elif lowered == "authorization":
            continue
        elif lowered == "x-forwarded-for":
            forwarded_for = value
        elif lowered in ("x-forwarded-host", "x-forwarded-proto"):
            continue
        else:
            outbound.append((name, value))

    if authorization is not None:
        outbound.append(("Authorization", authorization.header_value()))

    if client_host:
        forwarded_for = f"{forwarded_for}, {client_host}" if forwarded_for else client_host
    if forwarded_for:
        outbound.append(("X-Forwarded-For", forwarded_for))
    if host:
        outbound.append(("X-Forwarded-Host", host))
    outbound.append(("X-Forwarded-Proto", scheme))
    return outbound
