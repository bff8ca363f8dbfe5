# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Tests for GitHub login resolution."""

import httpx
import pytest

from token_rp.errors import IdentityResolutionError
from token_rp.resolver import GitHubIdentityResolver


def test_resolves_login(http_client, idp, silent_logger):
    resolver = GitHubIdentityResolver(http_client, logger=silent_logger)

    assert resolver.resolve_login("xyz789") == "alice"

    request = idp.calls("/user")[0]
    assert str(request.url) == "https://api.github.com/user"
    assert request.headers["Authorization"] == "Bearer xyz789"


def test_identity_server_override(http_client, idp, silent_logger):
    resolver = GitHubIdentityResolver(http_client, "https://github.example.com/api/v3/", logger=silent_logger)

    resolver.resolve_login("xyz789")

    assert str(idp.calls("/user")[0].url) == "https://github.example.com/api/v3/user"


def test_unauthorized_token(http_client, idp, silent_logger):
    idp.user_status = 401
    idp.user_body = {"message": "Bad credentials"}
    resolver = GitHubIdentityResolver(http_client, logger=silent_logger)

    with pytest.raises(IdentityResolutionError) as exc_info:
        resolver.resolve_login("revoked")

    assert str(exc_info.value) == "GET https://api.github.com/user: 401 Bad credentials"


def test_missing_login(http_client, idp, silent_logger):
    idp.user_body = {"id": 1}
    resolver = GitHubIdentityResolver(http_client, logger=silent_logger)

    with pytest.raises(IdentityResolutionError, match="no login"):
        resolver.resolve_login("xyz789")


def test_non_json_response(silent_logger):
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>")))
    resolver = GitHubIdentityResolver(client, logger=silent_logger)

    with pytest.raises(IdentityResolutionError, match="invalid user response"):
        resolver.resolve_login("xyz789")


def test_transport_error(silent_logger):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    resolver = GitHubIdentityResolver(httpx.Client(transport=httpx.MockTransport(handler)), logger=silent_logger)

    with pytest.raises(IdentityResolutionError, match="timed out"):
        resolver.resolve_login("xyz789")
    assert silent_logger.has_log("Identity server unreachable", level="ERROR")
