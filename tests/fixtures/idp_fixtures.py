# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Fake identity provider and backend for httpx.MockTransport."""

import json

import httpx
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jwt.algorithms import RSAAlgorithm

ISSUER = "https://sso.example.com/auth/realms/test"
CLIENT_ID = "token-rp"
KID = "test-key-id"
JWKS_URI = f"{ISSUER}/protocol/openid-connect/certs"


def generate_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


HMAC_SECRET = "shared-secret-long-enough-for-hs256-signing"


def key_for_algorithm(algorithm):
    """Signing key for a token whose header names ``algorithm``."""
    if algorithm.startswith("ES"):
        return ec.generate_private_key(ec.SECP256R1())
    if algorithm.startswith("HS"):
        return HMAC_SECRET
    return generate_private_key()


def public_jwk(private_key, kid=KID):
    jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk.update({"kid": kid, "use": "sig", "alg": "RS256"})
    return jwk


class FakeIdentityProvider:
    """Serves discovery, JWKS, broker and GitHub user endpoints.

    Broker and user responses are configurable per test; every request is
    recorded.
    """

    def __init__(self, discovery, jwks):
        self.discovery = discovery
        self.jwks = jwks
        self.broker_status = 200
        self.broker_body = b'{"access_token": "abc123", "token_type": "bearer"}'
        self.user_status = 200
        self.user_body = {"login": "alice", "id": 1}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/.well-known/openid-configuration"):
            return httpx.Response(200, json=self.discovery)
        if request.url == httpx.URL(JWKS_URI):
            return httpx.Response(200, json=self.jwks)
        if "/broker/" in path:
            return httpx.Response(self.broker_status, content=self.broker_body)
        if path.endswith("/user"):
            return httpx.Response(self.user_status, json=self.user_body)
        return httpx.Response(404, json={"message": "Not Found"})

    def calls(self, fragment):
        return [request for request in self.requests if fragment in request.url.path]

    @property
    def jwks_fetches(self):
        return [request for request in self.requests if request.url == httpx.URL(JWKS_URI)]


class BackendStream(httpx.AsyncByteStream):
    """Response body delivered as a stream, as a real backend connection would."""

    def __init__(self, body: bytes):
        self.body = body

    async def __aiter__(self):
        yield self.body


class FakeBackend:
    """Records forwarded requests and answers with a fixed streamed response."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.headers = [("X-Backend", "yes"), ("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")]
        self.body = b"backend response"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, headers=self.headers, stream=BackendStream(self.body))

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]
