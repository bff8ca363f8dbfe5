# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Verification of client credentials."""

from typing import Optional

import jwt

from token_rp_logging import Logger, create_logger

from .errors import ProviderError, TokenFormatError, TokenVerificationError
from .models import ValidatedIdentity
from .oidc_client import OIDCClient


class TokenValidator:
    """Checks that a credential is a valid token from the configured provider."""

    def __init__(self, oidc_client: OIDCClient, logger: Optional[Logger] = None):
        self.oidc_client = oidc_client
        self.logger = logger or create_logger("validator")

    def validate(self, credential: str) -> ValidatedIdentity:
        """Parse and verify a credential.

        Args:
            credential: Raw credential extracted from the request

        Returns:
            The verified identity

        Raises:
            TokenFormatError: If the credential is not a compact signed token
            TokenVerificationError: If signature, expiry, issuer or audience
                verification fails
        """
        try:
            header = jwt.get_unverified_header(credential)
        except jwt.InvalidTokenError as e:
            self.logger.warning("Malformed token", error=str(e), token_length=len(credential))
            raise TokenFormatError(f"invalid token format: {e}") from e

        try:
            claims = self.oidc_client.verify(credential)
        except jwt.ExpiredSignatureError as e:
            self.logger.warning("Token has expired", kid=header.get("kid"))
            raise TokenVerificationError(f"invalid token: {e}") from e
        except (jwt.PyJWTError, TypeError) as e:
            # TypeError: the header named an algorithm the key cannot be prepared for
            self.logger.warning(
                "Token verification failed",
                error=str(e),
                kid=header.get("kid"),
                alg=header.get("alg"),
            )
            raise TokenVerificationError(f"invalid token: {e}") from e
        except ProviderError as e:
            self.logger.error("Signing keys unavailable", error=str(e))
            raise TokenVerificationError(f"unable to verify token: {e}") from e

        identity = ValidatedIdentity.from_claims(claims)
        self.logger.debug("Token validated", sub=identity.subject, iss=identity.issuer)
        return identity
