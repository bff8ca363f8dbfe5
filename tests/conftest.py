# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Pytest configuration for token-rp tests."""

import time

import httpx
import jwt
import pytest

from tests.fixtures import CLIENT_ID, ISSUER, JWKS_URI, KID, FakeIdentityProvider, generate_private_key, public_jwk
from token_rp.models import ProviderConfig
from token_rp_logging import SilentLogger


@pytest.fixture(scope="session")
def private_key():
    return generate_private_key()


@pytest.fixture
def jwks(private_key):
    return {"keys": [public_jwk(private_key)]}


@pytest.fixture
def discovery_document():
    return {
        "issuer": ISSUER,
        "jwks_uri": JWKS_URI,
        "authorization_endpoint": f"{ISSUER}/protocol/openid-connect/auth",
        "token_endpoint": f"{ISSUER}/protocol/openid-connect/token",
        "userinfo_endpoint": f"{ISSUER}/protocol/openid-connect/userinfo",
        "id_token_signing_alg_values_supported": ["RS256"],
    }


@pytest.fixture
def provider_config(discovery_document):
    return ProviderConfig.from_discovery(discovery_document)


@pytest.fixture
def make_token(private_key):
    """Build signed tokens; keyword arguments override claims, None removes one."""

    def _make(key=None, kid=KID, algorithm="RS256", **overrides):
        now = int(time.time())
        claims = {
            "iss": ISSUER,
            "aud": CLIENT_ID,
            "sub": "user-123",
            "preferred_username": "developer",
            "email": "developer@example.com",
            "iat": now,
            "exp": now + 300,
        }
        claims.update(overrides)
        claims = {name: value for name, value in claims.items() if value is not None}
        headers = {"kid": kid} if kid else None
        return jwt.encode(claims, key or private_key, algorithm=algorithm, headers=headers)

    return _make


@pytest.fixture
def idp(discovery_document, jwks):
    return FakeIdentityProvider(discovery_document, jwks)


@pytest.fixture
def http_client(idp):
    client = httpx.Client(transport=httpx.MockTransport(idp.handler))
    yield client
    client.close()


@pytest.fixture
def silent_logger():
    return SilentLogger()
