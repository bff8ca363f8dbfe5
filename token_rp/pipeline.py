# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Per-request authentication pipeline.

A request moves through classification, credential extraction, validation,
exchange and (for git requests) identity resolution. Each stage either
advances or raises an :class:`~token_rp.errors.AuthenticationError`, which
rejects the request with 401. A request without a credential skips straight
to forwarding.
"""

from typing import Mapping, Optional

from token_rp_logging import Logger, create_logger

from .errors import CredentialRequiredError
from .exchanger import TokenExchanger
from .extractor import extract_credential
from .models import (
    BasicAuthorization,
    BearerAuthorization,
    ExchangedToken,
    OutboundAuthorization,
    ProviderType,
    ValidatedIdentity,
)
from .resolver import GitHubIdentityResolver
from .validator import TokenValidator


class AuthenticationPipeline:
    """Turns an inbound request's credential into the outbound one.

    The pipeline holds no request state and is shared by all concurrent
    requests.
    """

    def __init__(
        self,
        provider_type: ProviderType,
        validator: TokenValidator,
        exchanger: TokenExchanger,
        resolver: Optional[GitHubIdentityResolver] = None,
        require_credential: bool = False,
        logger: Optional[Logger] = None,
    ):
        """Initialize the pipeline.

        Args:
            provider_type: Configured backend provider type
            validator: Verifies inbound credentials
            exchanger: Exchanges verified credentials for backend tokens
            resolver: Resolves GitHub logins; required for the github type
            require_credential: Reject requests without a credential
            logger: Logger (default: stdout logger)
        """
        if provider_type is ProviderType.GITHUB and resolver is None:
            raise ValueError("github provider type requires an identity resolver")
        self.provider_type = provider_type
        self.validator = validator
        self.exchanger = exchanger
        self.resolver = resolver
        self.require_credential = require_credential
        self.logger = logger or create_logger("pipeline")

    def authenticate(self, path: str, headers: Mapping[str, str]) -> Optional[OutboundAuthorization]:
        """Compute the outbound credential for a request.

        Args:
            path: Request path
            headers: Request headers (case-insensitive mapping)

        Returns:
            The credential to attach, or None to forward without one

        Raises:
            AuthenticationError: If any stage rejects the request
        """
        is_git, credential = extract_credential(path, headers)

        if not credential:
            if self.require_credential:
                raise CredentialRequiredError("no credential supplied")
            self.logger.debug("No credential, forwarding anonymously", path=path, git=is_git)
            return None

        identity = self.validator.validate(credential)
        exchanged = self.exchanger.exchange(credential)

        if is_git:
            return self._git_authorization(identity, exchanged)
        return BearerAuthorization(
            scheme=self.provider_type.authorization_scheme,
            token=exchanged.access_token,
        )

    def _git_authorization(
        self,
        identity: ValidatedIdentity,
        exchanged: ExchangedToken,
    ) -> BasicAuthorization:
        if self.provider_type is ProviderType.GITHUB:
            username = self.resolver.resolve_login(exchanged.access_token)
        else:
            username = identity.username or identity.subject
        self.logger.debug("Git request authorized", username=username)
        return BasicAuthorization(username=username, password=exchanged.access_token)
