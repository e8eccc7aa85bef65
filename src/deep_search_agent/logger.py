"""Centralised logging configuration for the deep search agent.

This module provides a ``get_logger`` function returning a
pre-configured Python ``logging.Logger``.  The logger uses a
human-friendly formatter that includes timestamps and the log level.
By default, logs are emitted at the INFO level; set the environment
variable ``DEEP_SEARCH_LOG_LEVEL`` to ``DEBUG`` for verbose output.
"""

from __future__ import annotations

import logging
import os
from logging import Logger


_LOGGER_NAME = "deep_search_agent"


def _create_logger() -> Logger:
    """Create and configure the root logger for this package."""
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        # Already configured
        return logger

    level_str = os.getenv("DEEP_SEARCH_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_str, logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> Logger:
    """Return a child logger of the package logger or the root one.

    Module names are given as ``__name__``; the ``deep_search_agent.``
    prefix is stripped so records read ``deep_search_agent.selector``
    rather than repeating the package name.
    """
    root = _create_logger()
    if name:
        if name == _LOGGER_NAME:
            return root
        if name.startswith(_LOGGER_NAME + "."):
            name = name[len(_LOGGER_NAME) + 1 :]
        return root.getChild(name)
    return root
