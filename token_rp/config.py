# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Gateway configuration.

The configuration is parsed once from command-line flags (with environment
variable fallbacks for the required settings) into an immutable
:class:`GatewayConfig` that is handed to every component's constructor.
"""

import argparse
import os
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from . import __version__
from .errors import ConfigurationError
from .models import ProviderType

DISCOVERY_PATH = "/.well-known/openid-configuration"

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> float:
    """Parse a duration such as ``10s``, ``500ms``, ``5m`` or ``1h`` into seconds.

    A bare number is taken as seconds.

    Raises:
        ValueError: If the value is not a duration
    """
    match = _DURATION_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return float(amount) * _DURATION_UNITS[unit or "s"]


def normalize_issuer_url(url: str) -> str:
    """Strip a trailing discovery path and slash from an issuer URL."""
    url = url.strip()
    if url.endswith(DISCOVERY_PATH):
        url = url[: -len(DISCOVERY_PATH)]
    return url.rstrip("/")


def _require_http_url(name: str, value: Optional[str]) -> None:
    if not value:
        raise ConfigurationError(f"{name} is required")
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError(f"{name} must be an absolute http(s) URL: {value!r}")


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable gateway settings.

    Attributes:
        issuer_url: OIDC issuer URL, without the discovery path
        proxy_url: Backend URL requests are forwarded to
        client_id: OIDC client ID tokens must be issued for (``aud``)
        provider_alias: Broker alias of the backend identity provider
        provider_type: Kind of backend identity provider
        tls_cert: PEM certificate to serve TLS with
        tls_key: PEM key to serve TLS with
        ca_certs: Extra CA certificates trusted for outbound calls
        insecure_skip_verify: Disable outbound TLS verification (testing only)
        identity_server_url: GitHub API base URL override
        retry_interval: Seconds between provider config fetch attempts
        retry_max: Max provider config retries, negative for unlimited
        sync_interval: Seconds between background provider config refreshes
        upstream_timeout: Timeout in seconds for outbound calls
        require_credential: Reject requests that carry no credential
        listen_host: Address to listen on
        listen_port: Port to listen on
        verbose: Enable debug logging
    """

    issuer_url: str
    proxy_url: str
    client_id: str
    provider_alias: str
    provider_type: ProviderType
    tls_cert: Optional[str] = None
    tls_key: Optional[str] = None
    ca_certs: Tuple[str, ...] = field(default_factory=tuple)
    insecure_skip_verify: bool = False
    identity_server_url: Optional[str] = None
    retry_interval: float = 10.0
    retry_max: int = -1
    sync_interval: float = 300.0
    upstream_timeout: float = 30.0
    require_credential: bool = False
    listen_host: str = "0.0.0.0"
    listen_port: int = 8080
    verbose: bool = False

    def __post_init__(self):
        object.__setattr__(self, "issuer_url", normalize_issuer_url(self.issuer_url or ""))
        object.__setattr__(self, "ca_certs", tuple(self.ca_certs))

        _require_http_url("issuer-url", self.issuer_url)
        _require_http_url("proxy-url", self.proxy_url)
        if self.identity_server_url:
            _require_http_url("identity-server-url", self.identity_server_url)

        if not self.client_id:
            raise ConfigurationError("client-id is required")
        if not self.provider_alias:
            raise ConfigurationError("provider-alias is required")
        if not isinstance(self.provider_type, ProviderType):
            raise ConfigurationError(f"Unknown provider-type: {self.provider_type!r}")

        if self.tls_cert and not self.tls_key:
            raise ConfigurationError("tls-cert specified with no tls-key")
        if self.tls_key and not self.tls_cert:
            raise ConfigurationError("tls-key specified with no tls-cert")

        if self.retry_interval < 0:
            raise ConfigurationError("provider-config-retry-interval must not be negative")
        if self.sync_interval <= 0:
            raise ConfigurationError("provider-config-sync-interval must be positive")
        if self.upstream_timeout <= 0:
            raise ConfigurationError("upstream-timeout must be positive")
        if not 0 < self.listen_port < 65536:
            raise ConfigurationError(f"listen-port out of range: {self.listen_port}")

    @property
    def serves_tls(self) -> bool:
        return bool(self.tls_cert)

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.verbose else "INFO"


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser(environ: Optional[Mapping[str, str]] = None) -> argparse.ArgumentParser:
    """Build the command-line parser.

    Args:
        environ: Environment used for flag defaults (default: ``os.environ``)
    """
    env = environ if environ is not None else os.environ

    parser = argparse.ArgumentParser(
        prog="token-rp",
        description="Reverse proxy that swaps OIDC tokens for backend access tokens.",
    )
    parser.add_argument("--issuer-url", default=env.get("TOKEN_RP_ISSUER_URL"),
                        help="URL to OpenID Connect discovery document")
    parser.add_argument("--proxy-url", default=env.get("TOKEN_RP_PROXY_URL"),
                        help="URL to proxy requests to")
    parser.add_argument("--client-id", default=env.get("TOKEN_RP_CLIENT_ID", ""),
                        help="OpenID Connect client ID to verify")
    parser.add_argument("--provider-alias", default=env.get("TOKEN_RP_PROVIDER_ALIAS", ""),
                        help="Identity provider alias to replace the authorization token with")
    parser.add_argument("--provider-type", default=env.get("TOKEN_RP_PROVIDER_TYPE", ""),
                        help="Type of identity provider (openshift or github)")
    parser.add_argument("--tls-cert", help="Path to PEM-encoded certificate to use to serve over TLS")
    parser.add_argument("--tls-key", help="Path to PEM-encoded key to use to serve over TLS")
    parser.add_argument("--ca-cert", action="append", default=[], dest="ca_certs",
                        help="Extra root certificate(s) trusted when verifying server certificates")
    parser.add_argument("--insecure-skip-verify", action="store_true",
                        help="Accept any certificate presented by servers. Only for testing.")
    parser.add_argument("--identity-server-url", help="URL to identity server (GitHub API)")
    parser.add_argument("--provider-config-retry-interval", type=_duration, default=10.0,
                        help="Retry interval if provider config is unavailable (default: 10s)")
    parser.add_argument("--provider-config-retry-max", type=int, default=-1,
                        help="Max retries if provider config is unavailable, negative for unlimited")
    parser.add_argument("--provider-config-sync-interval", type=_duration, default=300.0,
                        help="Interval for refreshing the provider config (default: 5m)")
    parser.add_argument("--upstream-timeout", type=_duration, default=30.0,
                        help="Timeout for broker, identity server and backend calls (default: 30s)")
    parser.add_argument("--require-credential", action="store_true",
                        help="Reject requests that carry no credential instead of passing them through")
    parser.add_argument("--listen-host", default="0.0.0.0", help="Address to listen on")
    parser.add_argument("--listen-port", type=int, default=8080, help="Port to listen on")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_args(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GatewayConfig:
    """Parse command-line flags into a :class:`GatewayConfig`.

    Raises:
        SystemExit: On unparseable flags (status 2), or after ``--version``
        ConfigurationError: On invalid values or flag combinations
    """
    args = build_parser(environ).parse_args(argv)

    return GatewayConfig(
        issuer_url=args.issuer_url or "",
        proxy_url=args.proxy_url or "",
        client_id=args.client_id,
        provider_alias=args.provider_alias,
        provider_type=ProviderType.from_flag(args.provider_type),
        tls_cert=args.tls_cert,
        tls_key=args.tls_key,
        ca_certs=tuple(args.ca_certs),
        insecure_skip_verify=args.insecure_skip_verify,
        identity_server_url=args.identity_server_url,
        retry_interval=args.provider_config_retry_interval,
        retry_max=args.provider_config_retry_max,
        sync_interval=args.provider_config_sync_interval,
        upstream_timeout=args.upstream_timeout,
        require_credential=args.require_credential,
        listen_host=args.listen_host,
        listen_port=args.listen_port,
        verbose=args.verbose,
    )
