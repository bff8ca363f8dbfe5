# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Shared test fixtures for token-rp.

Example:
    from tests.fixtures import ISSUER, FakeIdentityProvider, generate_private_key
"""

from .idp_fixtures import (
    CLIENT_ID,
    ISSUER,
    JWKS_URI,
    HMAC_SECRET,
    KID,
    BackendStream,
    FakeBackend,
    FakeIdentityProvider,
    generate_private_key,
    key_for_algorithm,
    public_jwk,
)

__all__ = [
    "CLIENT_ID",
    "ISSUER",
    "JWKS_URI",
    "HMAC_SECRET",
    "KID",
    "BackendStream",
    "FakeBackend",
    "FakeIdentityProvider",
    "generate_private_key",
    "key_for_algorithm",
    "public_jwk",
]
