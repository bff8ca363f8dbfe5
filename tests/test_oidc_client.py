# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Tests for discovery, JWKS handling and the background sync."""

import httpx
import jwt
import pytest

from token_rp.errors import ProviderError
from token_rp.models import ProviderConfig
from token_rp.oidc_client import (
    OIDCClient,
    ProviderConfigSync,
    fetch_jwks,
    fetch_provider_config,
)

from tests.fixtures import CLIENT_ID, ISSUER, JWKS_URI, generate_private_key, key_for_algorithm, public_jwk


def client_for(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestFetchProviderConfig:
    """Tests for fetch_provider_config."""

    def test_fetches_discovery_document(self, http_client, idp):
        config = fetch_provider_config(http_client, ISSUER)

        assert config.issuer == ISSUER
        assert config.jwks_uri == JWKS_URI
        assert idp.requests[0].url == httpx.URL(ISSUER + "/.well-known/openid-configuration")

    def test_http_error_is_provider_error(self):
        client = client_for(lambda request: httpx.Response(503))

        with pytest.raises(ProviderError, match="OIDC discovery failed"):
            fetch_provider_config(client, ISSUER)

    def test_connection_error_is_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderError):
            fetch_provider_config(client_for(handler), ISSUER)

    def test_invalid_json_is_provider_error(self):
        client = client_for(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(ProviderError, match="invalid JSON"):
            fetch_provider_config(client, ISSUER)

    def test_issuer_mismatch_is_provider_error(self, discovery_document):
        discovery_document["issuer"] = "https://evil.example.com"
        client = client_for(lambda request: httpx.Response(200, json=discovery_document))

        with pytest.raises(ProviderError, match="does not match"):
            fetch_provider_config(client, ISSUER)


class TestFetchJwks:
    """Tests for fetch_jwks."""

    def test_parses_key_set(self, http_client):
        jwks = fetch_jwks(http_client, JWKS_URI)

        assert [key.key_id for key in jwks.keys] == ["test-key-id"]

    def test_empty_key_set_is_provider_error(self):
        client = client_for(lambda request: httpx.Response(200, json={"keys": []}))

        with pytest.raises(ProviderError):
            fetch_jwks(client, JWKS_URI)

    def test_http_error_is_provider_error(self):
        client = client_for(lambda request: httpx.Response(500))

        with pytest.raises(ProviderError, match="Failed to fetch JWKS"):
            fetch_jwks(client, JWKS_URI)


class TestOIDCClient:
    """Tests for OIDCClient.verify."""

    def test_verifies_valid_token(self, provider_config, http_client, make_token, silent_logger):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)

        claims = client.verify(make_token())

        assert claims["sub"] == "user-123"
        assert claims["aud"] == CLIENT_ID

    def test_keys_are_fetched_once(self, provider_config, http_client, idp, make_token, silent_logger):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)

        client.verify(make_token())
        client.verify(make_token())

        assert len(idp.jwks_fetches) == 1

    def test_unknown_kid_forces_refresh(self, provider_config, http_client, idp, make_token, silent_logger):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)
        client.verify(make_token())

        rotated_key = generate_private_key()
        idp.jwks = {"keys": idp.jwks["keys"] + [public_jwk(rotated_key, kid="rotated")]}

        claims = client.verify(make_token(key=rotated_key, kid="rotated"))

        assert claims["sub"] == "user-123"
        assert silent_logger.has_log("forcing JWKS refresh", level="WARNING")
        assert len(idp.jwks_fetches) == 2

    def test_unknown_kid_after_refresh_is_rejected(self, provider_config, http_client, make_token, silent_logger):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)

        with pytest.raises(jwt.InvalidTokenError, match="no signing key"):
            client.verify(make_token(kid="missing"))

    def test_forced_refreshes_are_rate_limited(self, provider_config, http_client, idp, make_token, silent_logger):
        client = OIDCClient(
            provider_config, CLIENT_ID, http_client, min_forced_refresh_interval=60.0, logger=silent_logger
        )
        client.verify(make_token())

        for kid in ("random-1", "random-2", "random-3"):
            with pytest.raises(jwt.InvalidTokenError, match="no signing key"):
                client.verify(make_token(kid=kid))

        assert len(idp.jwks_fetches) == 2

    def test_forced_refresh_allowed_once_interval_elapsed(self, provider_config, http_client, idp, make_token, silent_logger):
        client = OIDCClient(
            provider_config, CLIENT_ID, http_client, min_forced_refresh_interval=0.0, logger=silent_logger
        )
        client.verify(make_token())

        for kid in ("random-1", "random-2"):
            with pytest.raises(jwt.InvalidTokenError):
                client.verify(make_token(kid=kid))

        assert len(idp.jwks_fetches) == 3

    @pytest.mark.parametrize("algorithm", ["ES256", "HS256"])
    def test_header_algorithm_must_match_signing_key(
        self, discovery_document, http_client, make_token, silent_logger, algorithm
    ):
        discovery_document["id_token_signing_alg_values_supported"] = ["RS256", "ES256", "HS256"]
        config = ProviderConfig.from_discovery(discovery_document)
        client = OIDCClient(config, CLIENT_ID, http_client, logger=silent_logger)
        token = make_token(key=key_for_algorithm(algorithm), algorithm=algorithm)

        with pytest.raises(jwt.InvalidAlgorithmError):
            client.verify(token)

    def test_key_algorithm_must_be_allowed_by_provider(self, discovery_document, http_client, make_token, silent_logger):
        discovery_document["id_token_signing_alg_values_supported"] = ["ES256"]
        config = ProviderConfig.from_discovery(discovery_document)
        client = OIDCClient(config, CLIENT_ID, http_client, logger=silent_logger)

        with pytest.raises(jwt.InvalidAlgorithmError, match="does not allow"):
            client.verify(make_token())

    def test_token_without_kid_uses_single_key(self, provider_config, http_client, make_token, silent_logger):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)

        assert client.verify(make_token(kid=None))["sub"] == "user-123"

    @pytest.mark.parametrize(
        "overrides,error",
        [
            ({"aud": "someone-else"}, jwt.InvalidAudienceError),
            ({"iss": "https://other-issuer"}, jwt.InvalidIssuerError),
            ({"exp": 1000}, jwt.ExpiredSignatureError),
        ],
    )
    def test_claim_verification(self, provider_config, http_client, make_token, silent_logger, overrides, error):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)

        with pytest.raises(error):
            client.verify(make_token(**overrides))

    def test_bad_signature_is_rejected(self, provider_config, http_client, make_token, silent_logger):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)
        forged = make_token(key=generate_private_key())

        with pytest.raises(jwt.InvalidSignatureError):
            client.verify(forged)

    def test_refresh_swaps_snapshot(self, provider_config, http_client, discovery_document, idp, silent_logger):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)
        discovery_document["id_token_signing_alg_values_supported"] = ["RS256", "ES256"]

        refreshed = client.refresh(ISSUER)

        assert client.provider_config is refreshed
        assert refreshed.signing_algorithms == ("RS256", "ES256")


class TestProviderConfigSync:
    """Tests for the background provider config sync."""

    def test_sync_once_replaces_config(self, provider_config, http_client, silent_logger):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)
        sync = ProviderConfigSync(client, ISSUER, 60.0, logger=silent_logger)

        assert sync.sync_once() is True
        assert client.provider_config is not provider_config
        assert client.provider_config == provider_config

    def test_failed_sync_keeps_previous_config(self, provider_config, silent_logger):
        failing = client_for(lambda request: httpx.Response(503))
        client = OIDCClient(provider_config, CLIENT_ID, failing, logger=silent_logger)
        sync = ProviderConfigSync(client, ISSUER, 60.0, logger=silent_logger)

        assert sync.sync_once() is False
        assert client.provider_config is provider_config
        assert silent_logger.has_log("keeping previous config", level="WARNING")

    def test_start_and_stop(self, provider_config, http_client, silent_logger):
        client = OIDCClient(provider_config, CLIENT_ID, http_client, logger=silent_logger)
        sync = ProviderConfigSync(client, ISSUER, 3600.0, logger=silent_logger)

        sync.start()
        assert sync.running
        sync.stop()
        assert not sync.running
