# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Structured logging for token-rp.

Every component logs through the small :class:`Logger` interface so the
output backend can be swapped: JSON lines on stdout in production, an
in-memory capture in tests.

Example:
    >>> from token_rp_logging import create_logger
    >>> logger = create_logger("forwarder")
    >>> logger.info("Proxy listening", port=8080)
"""

__version__ = "0.1.0"

from .factory import create_logger
from .logger import Logger
from .silent_logger import SilentLogger
from .stdout_logger import StdoutLogger
from .uvicorn_config import create_uvicorn_log_config

__all__ = [
    "__version__",
    "Logger",
    "SilentLogger",
    "StdoutLogger",
    "create_logger",
    "create_uvicorn_log_config",
]
