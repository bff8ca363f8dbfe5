# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Streaming forwarder to the backend."""

from typing import AsyncIterator, Optional

import httpx
from fastapi import Request, status
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from token_rp_logging import Logger, create_logger

from .models import OutboundAuthorization
from .rewriter import build_outbound_headers, build_target_url, filter_hop_by_hop

# Starlette computes these for the response it sends
_RESPONSE_MANAGED_HEADERS = frozenset({"content-length"})


def _has_body(request: Request) -> bool:
    return "content-length" in request.headers or "transfer-encoding" in request.headers


def _raw_path(request: Request) -> str:
    """Inbound path as sent, with percent-escapes such as ``%2F`` intact."""
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.url.path
    return raw_path.decode("latin-1").split("?", 1)[0]


class Forwarder:
    """Sends rewritten requests to the backend and streams the responses back.

    Attributes:
        proxy_url: Backend URL requests are forwarded to
        client: Client holding the backend connection pool
    """

    def __init__(self, proxy_url: str, client: httpx.AsyncClient, logger: Optional[Logger] = None):
        self.proxy_url = proxy_url
        self.client = client
        self.logger = logger or create_logger("forwarder")

    async def forward(self, request: Request, authorization: Optional[OutboundAuthorization]) -> Response:
        """Forward ``request`` with ``authorization`` attached.

        Returns:
            The backend response, 502 if the backend is unreachable, or 504
            if it timed out
        """
        url = build_target_url(self.proxy_url, _raw_path(request), request.url.query)
        headers = build_outbound_headers(
            request.headers.items(),
            authorization,
            client_host=request.client.host if request.client else None,
            scheme=request.url.scheme,
        )
        outbound = self.client.build_request(
            request.method,
            url,
            headers=headers,
            content=request.stream() if _has_body(request) else None,
        )

        try:
            upstream = await self.client.send(outbound, stream=True)
        except httpx.TimeoutException as e:
            self.logger.error("Backend timed out", method=request.method, url=url, error=str(e))
            return PlainTextResponse("Gateway Timeout", status_code=status.HTTP_504_GATEWAY_TIMEOUT)
        except httpx.HTTPError as e:
            self.logger.error("Backend unreachable", method=request.method, url=url, error=str(e))
            return PlainTextResponse("Bad Gateway", status_code=status.HTTP_502_BAD_GATEWAY)

        self.logger.debug(
            "Forwarded request",
            method=request.method,
            url=url,
            status_code=upstream.status_code,
            authenticated=authorization is not None,
        )

        response_headers = [
            (name, value)
            for name, value in filter_hop_by_hop(
                (key.decode("latin-1"), val.decode("latin-1")) for key, val in upstream.headers.raw
            )
            if name.lower() not in _RESPONSE_MANAGED_HEADERS
        ]

        async def body() -> AsyncIterator[bytes]:
            try:
                async for chunk in upstream.aiter_raw():
                    yield chunk
            finally:
                await upstream.aclose()

        response = StreamingResponse(body(), status_code=upstream.status_code)
        # Assigned raw so repeated headers such as Set-Cookie survive
        response.raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in response_headers
        ]
        return response

    async def aclose(self) -> None:
        await self.client.aclose()
