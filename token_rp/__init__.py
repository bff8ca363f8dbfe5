# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""token-rp: OIDC token-translating reverse proxy.

Validates OIDC bearer tokens presented by clients, exchanges them at the
identity provider's broker endpoint for a backend access token, and forwards
the request to the backend carrying that token. Smart git HTTP requests are
authenticated with Basic Auth instead.
"""

__version__ = "0.1.0"

from .errors import (
    AuthenticationError,
    ConfigurationError,
    CredentialRequiredError,
    ExchangeError,
    GatewayError,
    IdentityResolutionError,
    ProviderConfigUnavailableError,
    ProviderError,
    StartupError,
    TokenFormatError,
    TokenVerificationError,
)
from .models import (
    BasicAuthorization,
    BearerAuthorization,
    ExchangedToken,
    ProviderConfig,
    ProviderType,
    ValidatedIdentity,
)

__all__ = [
    "__version__",
    # Models
    "BasicAuthorization",
    "BearerAuthorization",
    "ExchangedToken",
    "ProviderConfig",
    "ProviderType",
    "ValidatedIdentity",
    # Exceptions
    "AuthenticationError",
    "ConfigurationError",
    "CredentialRequiredError",
    "ExchangeError",
    "GatewayError",
    "IdentityResolutionError",
    "ProviderConfigUnavailableError",
    "ProviderError",
    "StartupError",
    "TokenFormatError",
    "TokenVerificationError",
]
