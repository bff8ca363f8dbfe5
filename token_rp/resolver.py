# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""GitHub login lookup for git requests.

Git clients authenticate with Basic Auth, so forwarding a GitHub token to a
git backend needs the token owner's login as the username.
"""

from typing import Optional

import httpx

from token_rp_logging import Logger, create_logger

from .errors import IdentityResolutionError

DEFAULT_GITHUB_API_URL = "https://api.github.com"


class GitHubIdentityResolver:
    """Resolves a GitHub access token to the login of its owner.

    Attributes:
        api_base_url: GitHub API base URL; GitHub Enterprise deployments use
            ``https://<host>/api/v3``
    """

    def __init__(
        self,
        http_client: httpx.Client,
        api_base_url: Optional[str] = None,
        logger: Optional[Logger] = None,
    ):
        self.http_client = http_client
        self.api_base_url = (api_base_url or DEFAULT_GITHUB_API_URL).rstrip("/")
        self.logger = logger or create_logger("resolver")

    def resolve_login(self, access_token: str) -> str:
        """Return the login of the user the token belongs to.

        Raises:
            IdentityResolutionError: If the user cannot be retrieved
        """
        url = f"{self.api_base_url}/user"
        try:
            response = self.http_client.get(
                url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/vnd.github+json",
                },
            )
        except httpx.HTTPError as e:
            self.logger.error("Identity server unreachable", error=str(e), url=url)
            raise IdentityResolutionError(f"GET {url}: {e}") from e

        if response.status_code != 200:
            raise IdentityResolutionError(
                f"GET {url}: {response.status_code} {self._error_message(response)}"
            )

        try:
            login = response.json().get("login")
        except (ValueError, AttributeError) as e:
            raise IdentityResolutionError(f"GET {url}: invalid user response") from e

        if not login:
            raise IdentityResolutionError(f"GET {url}: user response has no login")

        self.logger.debug("Resolved GitHub login", login=login)
        return login

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            message = response.json().get("message")
        except (ValueError, AttributeError):
            message = None
        return message or response.reason_phrase
