# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""Logger construction for gateway components."""

from typing import Optional

from .logger import Logger
from .stdout_logger import StdoutLogger

ROOT_LOGGER_NAME = "token_rp"


def create_logger(component: Optional[str] = None, level: str = "INFO") -> Logger:
    """Create the stdout logger for a gateway component.

    ``main`` builds the root logger from ``--verbose`` and hands it to every
    component. Components only build their own when constructed standalone.

    Args:
        component: Component name appended to ``token_rp``, e.g. ``"forwarder"``
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL

    Raises:
        ValueError: If the level is not recognized
    """
    name = f"{ROOT_LOGGER_NAME}.{component}" if component else ROOT_LOGGER_NAME
    return StdoutLogger(level=level.upper(), name=name)
