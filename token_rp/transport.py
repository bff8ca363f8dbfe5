# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Outbound HTTP clients.

Discovery, key fetches, broker exchanges and GitHub lookups share one
synchronous :class:`httpx.Client`; proxied requests go through an
:class:`httpx.AsyncClient`. Both trust the system CA bundle plus any extra
``--ca-cert`` files, unless verification is disabled.
"""

import ssl
from typing import Union

import httpx

from .config import GatewayConfig
from .errors import ConfigurationError


def build_ssl_context(config: GatewayConfig) -> Union[ssl.SSLContext, bool]:
    """Build the TLS verification setting for outbound clients.

    Returns:
        False when verification is disabled, otherwise an SSL context

    Raises:
        ConfigurationError: If a CA certificate cannot be loaded
    """
    if config.insecure_skip_verify:
        return False

    context = ssl.create_default_context()
    for ca_cert in config.ca_certs:
        try:
            context.load_verify_locations(cafile=ca_cert)
        except (OSError, ssl.SSLError) as e:
            raise ConfigurationError(f"Failed to read CA certificate {ca_cert}: {e}") from e
    return context


def build_http_client(config: GatewayConfig) -> httpx.Client:
    """Build the client for identity provider and identity server calls."""
    return httpx.Client(
        verify=build_ssl_context(config),
        timeout=config.upstream_timeout,
    )


def build_proxy_client(config: GatewayConfig) -> httpx.AsyncClient:
    """Build the client that forwards requests to the backend.

    Redirects are passed back to the caller rather than followed.
    """
    return httpx.AsyncClient(
        verify=build_ssl_context(config),
        timeout=config.upstream_timeout,
        follow_redirects=False,
    )
