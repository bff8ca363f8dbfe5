# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Exception hierarchy for the gateway.

Two families matter to callers: :class:`StartupError` stops the process
before it serves anything, :class:`AuthenticationError` rejects a single
request with HTTP 401 and its message as the response detail.
"""


class GatewayError(Exception):
    """Base class for all gateway errors."""


class StartupError(GatewayError):
    """Raised when the gateway cannot start serving."""


class ConfigurationError(StartupError):
    """Raised for invalid flag values or flag combinations."""


class ProviderConfigUnavailableError(StartupError):
    """Raised when the provider config could not be fetched within the retry budget."""


class ProviderError(GatewayError):
    """Raised when the identity provider's discovery document or keys are unavailable."""


class AuthenticationError(GatewayError):
    """Raised when a request's credential is rejected."""


class TokenFormatError(AuthenticationError):
    """Raised when a credential is not a compact signed token."""


class TokenVerificationError(AuthenticationError):
    """Raised when a token fails signature or claim verification."""


class ExchangeError(AuthenticationError):
    """Raised when the broker endpoint does not yield an access token."""


class IdentityResolutionError(AuthenticationError):
    """Raised when the exchanged token cannot be resolved to a username."""


class CredentialRequiredError(AuthenticationError):
    """Raised when anonymous passthrough is disabled and no credential was sent."""
