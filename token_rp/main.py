# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Command-line entry point.

Startup order: parse flags, fetch the provider config (blocking, with
retries), wire the components, then serve.
"""

import ssl
import sys
from functools import partial
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI

from token_rp_logging import Logger, create_logger, create_uvicorn_log_config

from .app import create_app
from .bootstrap import bootstrap_provider_config
from .config import GatewayConfig, parse_args
from .errors import ConfigurationError, StartupError
from .exchanger import TokenExchanger
from .forwarder import Forwarder
from .models import ProviderType
from .oidc_client import OIDCClient, ProviderConfigSync, fetch_provider_config
from .pipeline import AuthenticationPipeline
from .resolver import GitHubIdentityResolver
from .transport import build_http_client, build_proxy_client
from .validator import TokenValidator


def build_application(config: GatewayConfig, logger: Logger) -> FastAPI:
    """Bootstrap the provider config and wire all components.

    Raises:
        StartupError: If the provider config is unavailable or a CA
            certificate cannot be read
    """
    http_client = build_http_client(config)

    provider_config = bootstrap_provider_config(
        partial(fetch_provider_config, http_client),
        config.issuer_url,
        retry_interval=config.retry_interval,
        retry_max=config.retry_max,
        logger=logger,
    )

    oidc_client = OIDCClient(provider_config, config.client_id, http_client, logger=logger)
    resolver = None
    if config.provider_type is ProviderType.GITHUB:
        resolver = GitHubIdentityResolver(http_client, config.identity_server_url, logger=logger)

    pipeline = AuthenticationPipeline(
        provider_type=config.provider_type,
        validator=TokenValidator(oidc_client, logger=logger),
        exchanger=TokenExchanger(
            config.issuer_url,
            config.provider_alias,
            config.provider_type,
            http_client,
            logger=logger,
        ),
        resolver=resolver,
        require_credential=config.require_credential,
        logger=logger,
    )
    forwarder = Forwarder(config.proxy_url, build_proxy_client(config), logger=logger)
    sync = ProviderConfigSync(oidc_client, config.issuer_url, config.sync_interval, logger=logger)

    return create_app(pipeline, forwarder, sync=sync, logger=logger)


def build_server(config: GatewayConfig, app: FastAPI) -> uvicorn.Server:
    """Create the uvicorn server, enforcing TLS 1.2 or newer when serving TLS."""
    server_config = uvicorn.Config(
        app,
        host=config.listen_host,
        port=config.listen_port,
        ssl_certfile=config.tls_cert,
        ssl_keyfile=config.tls_key,
        log_config=create_uvicorn_log_config("token-rp", config.log_level),
    )
    try:
        server_config.load()
    except (OSError, ssl.SSLError) as e:
        raise ConfigurationError(f"Failed to load TLS certificate or key: {e}") from e
    if server_config.ssl is not None:
        server_config.ssl.minimum_version = ssl.TLSVersion.TLSv1_2
    return uvicorn.Server(server_config)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the gateway.

    Returns:
        Process exit status
    """
    try:
        config = parse_args(argv)
    except StartupError as e:
        print(f"token-rp: {e}", file=sys.stderr)
        return 2

    logger = create_logger(level=config.log_level)

    try:
        app = build_application(config, logger)
        server = build_server(config, app)
    except StartupError as e:
        logger.critical("Startup failed", error=str(e))
        return 1

    logger.info(
        "Serving",
        host=config.listen_host,
        port=config.listen_port,
        tls=config.serves_tls,
        provider_type=config.provider_type.value,
    )
    server.run()
    return 0
