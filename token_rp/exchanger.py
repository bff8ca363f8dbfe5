# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Broker token exchange.

The identity provider's broker endpoint trades a verified OIDC token for the
access token the backend understands. Brokers encode that token differently
per backend and do not reliably set a content type, so the response is
decoded according to the configured :class:`~token_rp.models.ProviderType`.
"""

import re
from typing import Callable, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from token_rp_logging import Logger, create_logger

from .errors import ExchangeError
from .models import ExchangedToken, ProviderType

MISSING_ACCESS_TOKEN = "missing access token in broker token"

# A "%" not followed by two hex digits
_INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class BrokerToken(BaseModel):
    """JSON broker token response."""

    model_config = ConfigDict(extra="ignore")

    access_token: Optional[str] = None


def parse_json_broker_token(body: bytes) -> str:
    try:
        token = BrokerToken.model_validate_json(body)
    except ValidationError as e:
        raise ExchangeError(f"invalid broker token: {e.errors()[0]['msg']}") from e
    if not token.access_token:
        raise ExchangeError(MISSING_ACCESS_TOKEN)
    return token.access_token


def parse_query_broker_token(body: bytes) -> str:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ExchangeError(f"invalid broker token: {e}") from e

    bad_escape = _INVALID_ESCAPE.search(text)
    if bad_escape:
        escape = text[bad_escape.start():bad_escape.start() + 3]
        raise ExchangeError(f"invalid broker token: invalid URL escape {escape!r}")

    query = httpx.QueryParams(text)
    access_token = query.get("access_token")
    if not access_token:
        raise ExchangeError(MISSING_ACCESS_TOKEN)
    return access_token


BROKER_TOKEN_PARSERS: Dict[ProviderType, Callable[[bytes], str]] = {
    ProviderType.OPENSHIFT: parse_json_broker_token,
    ProviderType.GITHUB: parse_query_broker_token,
}


class TokenExchanger:
    """Exchanges verified credentials at the broker endpoint.

    Attributes:
        token_url: ``<issuer>/broker/<alias>/token``
        provider_type: Decides how the broker response is decoded
    """

    def __init__(
        self,
        issuer_url: str,
        provider_alias: str,
        provider_type: ProviderType,
        http_client: httpx.Client,
        logger: Optional[Logger] = None,
    ):
        self.token_url = f"{issuer_url.rstrip('/')}/broker/{quote(provider_alias, safe='')}/token"
        self.provider_type = provider_type
        self.http_client = http_client
        self._parse = BROKER_TOKEN_PARSERS[provider_type]
        self.logger = logger or create_logger("exchanger")

    def exchange(self, credential: str) -> ExchangedToken:
        """Exchange a verified credential for a backend access token.

        Args:
            credential: The verified client token

        Returns:
            The backend access token

        Raises:
            ExchangeError: If the broker call fails, answers with a status
                other than 200, or returns no access token
        """
        try:
            response = self.http_client.get(
                self.token_url,
                headers={"Authorization": f"Bearer {credential}"},
            )
        except httpx.HTTPError as e:
            self.logger.error("Broker endpoint unreachable", error=str(e), url=self.token_url)
            raise ExchangeError(f"unable to retrieve broker token: {e}") from e

        if response.status_code != 200:
            self.logger.warning(
                "Broker token request rejected",
                status_code=response.status_code,
                url=self.token_url,
            )
            raise ExchangeError(
                f"unable to retrieve broker token: {response.status_code} {response.reason_phrase}"
            )

        access_token = self._parse(response.content)
        self.logger.debug("Broker token retrieved", provider_type=self.provider_type.value)
        return ExchangedToken(provider_type=self.provider_type, access_token=access_token)
