"""Configuration helpers for the deep search agent.

This module centralises the reading of environment variables and
exposes configuration values with sensible defaults.  Environment
variables are loaded using ``python-dotenv`` so that developers can
create a ``.env`` file at the root of the project for local
development without polluting the global environment.

API keys are optional at import time so that the package (and its
tests) can be imported without secrets.  Code that actually talks to a
provider calls :func:`require` which raises a
:class:`~deep_search_agent.exceptions.ConfigurationError` naming the
missing variable.

Usage:

>>> from deep_search_agent.config import require
>>> require("TAVILY_API_KEY")
'your-key'
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigurationError


def _load_env() -> None:
    """Load environment variables from the nearest `.env`.

    Uses python-dotenv's `find_dotenv` to locate a `.env` starting from the
    current working directory and walking up. Falls back to the package
    directory if discovery fails.
    """
    discovered = find_dotenv(usecwd=True)
    if discovered:
        load_dotenv(discovered, override=False)
        return
    here = Path(__file__).resolve().parent
    for env_path in (here / ".env", here.parent / ".env"):
        if env_path.exists():
            load_dotenv(env_path, override=False)
            return


_load_env()


def get_env(name: str, default: str | None = None) -> str | None:
    """Get an arbitrary environment variable with optional default."""
    _load_env()
    return os.getenv(name, default)


def require(var_name: str) -> str:
    """Return the value of environment variable ``var_name`` or raise.

    Raises
    ------
    ConfigurationError
        If the variable is not set in the environment.
    """
    value = get_env(var_name)
    if not value:
        raise ConfigurationError(
            f"Required environment variable {var_name} is not set. "
            "Define it in your shell or in a .env file."
        )
    return value


def get_int(name: str, default: int, *, minimum: int = 1) -> int:
    """Read an integer setting, rejecting values below ``minimum``."""
    raw = get_env(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


# Public configuration values
NVIDIA_API_KEY: str | None = get_env("NVIDIA_API_KEY")
"""API key for the NVIDIA NIM ChatNVIDIA model."""

TAVILY_API_KEY: str | None = get_env("TAVILY_API_KEY")
"""API key for the Tavily search / extract API."""

MODEL_NAME: str = get_env("DEEP_SEARCH_MODEL", "moonshotai/kimi-k2-instruct") or "moonshotai/kimi-k2-instruct"

MAX_STEPS: int = get_int("DEEP_SEARCH_MAX_STEPS", 10)
"""Ceiling on search/crawl iterations before a best-effort answer is forced."""

TOOL_MAX_STEPS: int = get_int("DEEP_SEARCH_TOOL_MAX_STEPS", 15)

NUM_SEARCH_RESULTS: int = get_int("DEEP_SEARCH_NUM_RESULTS", 10)

RETRY_ATTEMPTS: int = get_int("DEEP_SEARCH_RETRY_ATTEMPTS", 3)

MAX_DURATION_SECONDS: int = get_int("DEEP_SEARCH_MAX_DURATION", 30)

AGENT_MODE: str = (get_env("DEEP_SEARCH_AGENT_MODE", "loop") or "loop").lower()
if AGENT_MODE not in {"loop", "tools"}:
    raise ConfigurationError(f"DEEP_SEARCH_AGENT_MODE must be 'loop' or 'tools', got {AGENT_MODE!r}")

DATABASE_URL: str = get_env("DEEP_SEARCH_DATABASE_URL", "sqlite:///deep_search.db") or "sqlite:///deep_search.db"

DEFAULT_USER_ID: str = get_env("DEEP_SEARCH_USER_ID", "usr_booker") or "usr_booker"
"""Identity used when a request does not carry its own ``X-User-Id``."""
