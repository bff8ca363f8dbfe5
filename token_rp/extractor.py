# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Request classification and credential extraction.

Smart git HTTP clients cannot send bearer tokens, so requests for git
transfer endpoints carry the credential as the Basic Auth password. Every
other request carries it in the ``Authorization`` header as
``Bearer <token>`` or ``token <token>``.

A missing or malformed credential is not an error here: the request simply
has no credential.
"""

import base64
import binascii
import re
from typing import Mapping, Optional, Tuple

GIT_REQUEST_PATTERN = re.compile(
    r"/(git-upload-pack|git-receive-pack|info/refs|HEAD"
    r"|objects/info/alternates|objects/info/http-alternates|objects/info/packs|objects/info/[^/]*"
    r"|objects/[0-9a-f]{2}/[0-9a-f]{38}"
    r"|objects/pack/pack-[0-9a-f]{40}\.pack|objects/pack/pack-[0-9a-f]{40}\.idx)$"
)

BEARER_SCHEMES = ("bearer", "token")


def is_git_request(path: str) -> bool:
    """Return True if ``path`` addresses a smart git HTTP transfer endpoint."""
    return GIT_REQUEST_PATTERN.search(path) is not None


def basic_auth_credentials(headers: Mapping[str, str]) -> Optional[Tuple[str, str]]:
    """Decode the HTTP Basic Auth pair from ``headers``.

    Returns:
        ``(username, password)``, or None if the header is absent or not
        valid Basic Auth
    """
    auth_header = headers.get("authorization")
    if not auth_header:
        return None

    prefix = "basic "
    if len(auth_header) < len(prefix) or auth_header[: len(prefix)].lower() != prefix:
        return None

    try:
        decoded = base64.b64decode(auth_header[len(prefix):], validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


def token_from_auth_header(headers: Mapping[str, str], scheme: str) -> Optional[str]:
    """Return the token of an ``Authorization: <scheme> <token>`` header.

    The header must consist of exactly two space-separated fields and the
    scheme is compared case-insensitively.
    """
    auth_header = headers.get("authorization")
    if not auth_header:
        return None

    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0].lower() != scheme:
        return None
    return parts[1] or None


def bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """Return the first token found for the accepted bearer-style schemes."""
    for scheme in BEARER_SCHEMES:
        token = token_from_auth_header(headers, scheme)
        if token:
            return token
    return None


def extract_credential(path: str, headers: Mapping[str, str]) -> Tuple[bool, Optional[str]]:
    """Classify a request and extract its credential.

    Args:
        path: Request path
        headers: Request headers (case-insensitive mapping)

    Returns:
        Tuple of (is_git_request, credential). The credential is None when
        the request carries none.
    """
    if is_git_request(path):
        pair = basic_auth_credentials(headers)
        if pair is None:
            return True, None
        return True, pair[1] or None

    return False, bearer_token(headers)
