# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Data models for the authentication-translation pipeline."""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from .errors import ConfigurationError, ProviderError


class ProviderType(Enum):
    """Kind of backend behind the identity provider's broker.

    The provider type decides how the broker encodes the exchanged token and
    which authorization scheme the backend expects.
    """

    OPENSHIFT = "openshift"
    GITHUB = "github"

    @classmethod
    def from_flag(cls, value: Optional[str]) -> "ProviderType":
        """Build a provider type from a flag value.

        Raises:
            ConfigurationError: If the value is not a supported provider type
        """
        try:
            return cls(value)
        except ValueError:
            supported = ", ".join(member.value for member in cls)
            raise ConfigurationError(
                f"Unknown provider-type: {value!r} (supported: {supported})"
            ) from None

    @property
    def authorization_scheme(self) -> str:
        """Scheme used in the outbound Authorization header."""
        if self is ProviderType.GITHUB:
            return "token"
        return "Bearer"


@dataclass(frozen=True)
class ProviderConfig:
    """Identity provider metadata from the OIDC discovery document.

    Attributes:
        issuer: Issuer identifier tokens must carry in ``iss``
        jwks_uri: URL of the provider's JSON Web Key Set
        authorization_endpoint: OAuth authorization endpoint
        token_endpoint: OAuth token endpoint
        userinfo_endpoint: OIDC userinfo endpoint
        signing_algorithms: Algorithms accepted for ID token signatures
        document: The raw discovery document
    """

    issuer: str
    jwks_uri: str
    authorization_endpoint: Optional[str] = None
    token_endpoint: Optional[str] = None
    userinfo_endpoint: Optional[str] = None
    signing_algorithms: Tuple[str, ...] = ("RS256",)
    document: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_discovery(cls, document: Dict[str, Any]) -> "ProviderConfig":
        """Build a provider config from a parsed discovery document.

        Raises:
            ProviderError: If ``issuer`` or ``jwks_uri`` is missing
        """
        if not isinstance(document, dict):
            raise ProviderError("OIDC discovery response is not a JSON object")

        issuer = document.get("issuer")
        jwks_uri = document.get("jwks_uri")
        if not issuer or not jwks_uri:
            raise ProviderError("OIDC discovery response missing required fields (issuer, jwks_uri)")

        algorithms = tuple(document.get("id_token_signing_alg_values_supported") or ("RS256",))
        # "none" is never acceptable for a credential we forward on
        algorithms = tuple(alg for alg in algorithms if alg != "none") or ("RS256",)

        return cls(
            issuer=issuer,
            jwks_uri=jwks_uri,
            authorization_endpoint=document.get("authorization_endpoint"),
            token_endpoint=document.get("token_endpoint"),
            userinfo_endpoint=document.get("userinfo_endpoint"),
            signing_algorithms=algorithms,
            document=document,
        )


@dataclass(frozen=True)
class ValidatedIdentity:
    """Claims of a credential that passed verification.

    Attributes:
        subject: ``sub`` claim
        issuer: ``iss`` claim
        username: ``preferred_username`` claim, when present
        email: ``email`` claim, when present
        claims: The full verified claim set
    """

    subject: str
    issuer: str
    username: Optional[str] = None
    email: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "ValidatedIdentity":
        return cls(
            subject=str(claims.get("sub", "")),
            issuer=str(claims.get("iss", "")),
            username=claims.get("preferred_username"),
            email=claims.get("email"),
            claims=claims,
        )


@dataclass(frozen=True)
class ExchangedToken:
    """Backend access token returned by the broker endpoint."""

    provider_type: ProviderType
    access_token: str = field(repr=False)


@dataclass(frozen=True)
class BearerAuthorization:
    """Outbound ``Authorization: <scheme> <token>`` credential."""

    scheme: str
    token: str = field(repr=False)

    def header_value(self) -> str:
        return f"{self.scheme} {self.token}"


@dataclass(frozen=True)
class BasicAuthorization:
    """Outbound HTTP Basic Auth credential."""

    username: str
    password: str = field(repr=False)

    def header_value(self) -> str:
        userpass = f"{self.username}:{self.password}".encode("utf-8")
        return "Basic " + base64.b64encode(userpass).decode("ascii")


OutboundAuthorization = Union[BearerAuthorization, BasicAuthorization]
