# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""OIDC provider discovery, signing keys and token verification.

The :class:`OIDCClient` owns the process-wide view of the identity provider:
the discovery document and the JSON Web Key Set. Both are swapped together
as one snapshot, so a verification never mixes keys from one refresh with
the issuer of another.
"""

import threading
import time
from typing import Any, Dict, Optional, Tuple

import httpx
import jwt

from token_rp_logging import Logger, create_logger

from .config import DISCOVERY_PATH
from .errors import ProviderError
from .models import ProviderConfig

# Clock skew tolerated on exp/iat/nbf, in seconds
DEFAULT_LEEWAY = 30

# Minimum seconds between JWKS refetches triggered by an unknown kid
DEFAULT_MIN_FORCED_REFRESH_INTERVAL = 10.0


def fetch_provider_config(http_client: httpx.Client, issuer_url: str) -> ProviderConfig:
    """Fetch and parse the provider's discovery document.

    Args:
        http_client: Client used for the request
        issuer_url: Issuer URL without the discovery path

    Returns:
        Parsed provider config

    Raises:
        ProviderError: If the document cannot be fetched, is malformed, or
            names a different issuer
    """
    discovery_url = issuer_url + DISCOVERY_PATH
    try:
        response = http_client.get(discovery_url)
        response.raise_for_status()
        document = response.json()
    except httpx.HTTPError as e:
        raise ProviderError(f"OIDC discovery failed: {e}") from e
    except ValueError as e:
        raise ProviderError(f"OIDC discovery returned invalid JSON: {e}") from e

    provider_config = ProviderConfig.from_discovery(document)
    if provider_config.issuer.rstrip("/") != issuer_url.rstrip("/"):
        raise ProviderError(
            f"OIDC discovery issuer {provider_config.issuer!r} does not match {issuer_url!r}"
        )
    return provider_config


def fetch_jwks(http_client: httpx.Client, jwks_uri: str) -> jwt.PyJWKSet:
    """Fetch the provider's signing keys.

    Raises:
        ProviderError: If the key set cannot be fetched or holds no usable key
    """
    try:
        response = http_client.get(jwks_uri)
        response.raise_for_status()
        return jwt.PyJWKSet.from_dict(response.json())
    except httpx.HTTPError as e:
        raise ProviderError(f"Failed to fetch JWKS: {e}") from e
    except (ValueError, AttributeError, jwt.PyJWKSetError) as e:
        raise ProviderError(f"Invalid JWKS from {jwks_uri}: {e}") from e


class OIDCClient:
    """Verifies tokens against the identity provider's current keys.

    Attributes:
        client_id: Audience tokens must be issued for
        http_client: Client used for discovery and key fetches
    """

    def __init__(
        self,
        provider_config: ProviderConfig,
        client_id: str,
        http_client: httpx.Client,
        jwks: Optional[jwt.PyJWKSet] = None,
        leeway: int = DEFAULT_LEEWAY,
        min_forced_refresh_interval: float = DEFAULT_MIN_FORCED_REFRESH_INTERVAL,
        logger: Optional[Logger] = None,
    ):
        """Initialize the client.

        Args:
            provider_config: Bootstrapped provider config
            client_id: Expected ``aud`` claim
            http_client: Client used for discovery and key fetches
            jwks: Initial key set; fetched lazily when omitted
            leeway: Clock skew tolerance in seconds
            min_forced_refresh_interval: Minimum seconds between JWKS
                refetches forced by tokens with an unknown ``kid``
            logger: Logger (default: stdout logger)
        """
        self.client_id = client_id
        self.http_client = http_client
        self.leeway = leeway
        self.min_forced_refresh_interval = min_forced_refresh_interval
        self.logger = logger or create_logger("oidc")
        self._lock = threading.Lock()
        self._snapshot: Tuple[ProviderConfig, Optional[jwt.PyJWKSet]] = (provider_config, jwks)
        self._last_forced_refresh: Optional[float] = None

    @property
    def provider_config(self) -> ProviderConfig:
        """Current provider config snapshot."""
        return self._snapshot[0]

    def refresh(self, issuer_url: Optional[str] = None) -> ProviderConfig:
        """Re-fetch the discovery document and keys and swap them in.

        Args:
            issuer_url: Issuer to discover (default: the current issuer)

        Raises:
            ProviderError: If either fetch fails; the previous snapshot is kept
        """
        issuer = issuer_url or self.provider_config.issuer
        provider_config = fetch_provider_config(self.http_client, issuer)
        jwks = fetch_jwks(self.http_client, provider_config.jwks_uri)
        with self._lock:
            self._snapshot = (provider_config, jwks)
        self.logger.debug(
            "Provider config refreshed",
            issuer=provider_config.issuer,
            keys=len(jwks.keys),
        )
        return provider_config

    def _refresh_keys(self, provider_config: ProviderConfig) -> jwt.PyJWKSet:
        jwks = fetch_jwks(self.http_client, provider_config.jwks_uri)
        with self._lock:
            if self._snapshot[0] is provider_config:
                self._snapshot = (provider_config, jwks)
        self.logger.info("Fetched JWKS", jwks_uri=provider_config.jwks_uri, keys=len(jwks.keys))
        return jwks

    def _signing_key(
        self,
        provider_config: ProviderConfig,
        jwks: Optional[jwt.PyJWKSet],
        kid: Optional[str],
    ) -> jwt.PyJWK:
        if jwks is None:
            jwks = self._refresh_keys(provider_config)

        key = self._find_key(jwks, kid)
        if key is not None:
            return key

        # Unknown kid: the provider may have rotated its keys since the last fetch
        if not self._claim_forced_refresh():
            raise jwt.InvalidTokenError(f"no signing key found for kid {kid!r}")
        self.logger.warning("No matching signing key, forcing JWKS refresh", kid=kid)
        key = self._find_key(self._refresh_keys(provider_config), kid)
        if key is None:
            raise jwt.InvalidTokenError(f"no signing key found for kid {kid!r}")
        return key

    def _claim_forced_refresh(self) -> bool:
        now = time.monotonic()
        with self._lock:
            last = self._last_forced_refresh
            if last is not None and now - last < self.min_forced_refresh_interval:
                return False
            self._last_forced_refresh = now
        return True

    @staticmethod
    def _find_key(jwks: jwt.PyJWKSet, kid: Optional[str]) -> Optional[jwt.PyJWK]:
        if kid is None:
            return jwks.keys[0] if len(jwks.keys) == 1 else None
        for key in jwks.keys:
            if key.key_id == kid:
                return key
        return None

    def verify(self, token: str) -> Dict[str, Any]:
        """Verify a token's signature and claims.

        Args:
            token: Compact JWS

        Returns:
            Verified claims

        Raises:
            jwt.InvalidTokenError: If the token fails verification
            ProviderError: If the signing keys cannot be fetched
        """
        provider_config, jwks = self._snapshot
        header = jwt.get_unverified_header(token)
        key = self._signing_key(provider_config, jwks, header.get("kid"))

        # Only the key's own algorithm may verify it, and only if the provider allows it
        if key.algorithm_name not in provider_config.signing_algorithms:
            raise jwt.InvalidAlgorithmError(
                f"signing key {key.key_id!r} uses {key.algorithm_name}, which the provider does not allow"
            )

        return jwt.decode(
            token,
            key=key.key,
            algorithms=[key.algorithm_name],
            audience=self.client_id,
            issuer=provider_config.issuer,
            leeway=self.leeway,
            options={"require": ["exp", "iss", "aud"]},
        )


class ProviderConfigSync:
    """Background thread that keeps an :class:`OIDCClient` up to date.

    Failed refreshes are logged and the previous snapshot stays in use.
    """

    def __init__(
        self,
        oidc_client: OIDCClient,
        issuer_url: str,
        interval: float,
        logger: Optional[Logger] = None,
    ):
        self.oidc_client = oidc_client
        self.issuer_url = issuer_url
        self.interval = interval
        self.logger = logger or create_logger("oidc")
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sync_once(self) -> bool:
        """Run one refresh.

        Returns:
            True if the snapshot was replaced
        """
        try:
            self.oidc_client.refresh(self.issuer_url)
        except ProviderError as e:
            self.logger.warning(
                "Provider config sync failed, keeping previous config",
                error=str(e),
                issuerURL=self.issuer_url,
            )
            return False
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.sync_once()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="provider-config-sync", daemon=True)
        self._thread.start()
        self.logger.info("Provider config sync started", interval=self.interval)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
