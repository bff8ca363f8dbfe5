# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Startup fetch of the identity provider config.

The gateway must not serve without a provider config, so startup blocks in
:func:`bootstrap_provider_config` until the discovery document is fetched
or the retry budget is spent.
"""

import time
from typing import Callable, Optional

from token_rp_logging import Logger, create_logger

from .errors import ProviderConfigUnavailableError, ProviderError
from .models import ProviderConfig


def bootstrap_provider_config(
    fetch: Callable[[str], ProviderConfig],
    issuer_url: str,
    retry_interval: float,
    retry_max: int,
    logger: Optional[Logger] = None,
) -> ProviderConfig:
    """Fetch the provider config, retrying on failure.

    With ``retry_max = N >= 0`` at most ``N + 1`` attempts are made; a
    negative ``retry_max`` retries until the fetch succeeds.

    Args:
        fetch: Callable fetching the config for an issuer URL
        issuer_url: Issuer URL
        retry_interval: Seconds to wait between attempts
        retry_max: Maximum number of retries, negative for unlimited
        logger: Logger (default: stdout logger)

    Returns:
        The fetched provider config

    Raises:
        ProviderConfigUnavailableError: If every allowed attempt failed
    """
    logger = logger or create_logger("bootstrap")
    retries = 0

    while True:
        try:
            provider_config = fetch(issuer_url)
        except ProviderError as e:
            if 0 <= retry_max <= retries:
                logger.critical("Provider config unavailable", error=str(e), issuerURL=issuer_url)
                raise ProviderConfigUnavailableError(
                    f"Provider config unavailable after {retries + 1} attempts: {e}"
                ) from e

            logger.warning(
                "Provider config unavailable (retrying)",
                error=str(e),
                issuerURL=issuer_url,
                attempt=retries + 1,
            )
            retries += 1
            time.sleep(retry_interval)
            continue

        logger.info("Provider config fetched", issuer=provider_config.issuer, attempts=retries + 1)
        return provider_config
