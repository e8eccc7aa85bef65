"""Model factory for the deep search agent.

This module exposes functions to construct the ChatNVIDIA large language
model used for both action selection and answer generation.  All
parameters are configurable via environment variables or function
arguments.
"""

from __future__ import annotations

from typing import Optional

from langchain_nvidia_ai_endpoints import ChatNVIDIA

from . import config
from .logger import get_logger


log = get_logger(__name__)


def create_llm(
    api_key: Optional[str] = None,
    *,
    model_name: Optional[str] = None,
    temperature: float = 0.6,
    top_p: float = 0.9,
    max_completion_tokens: int = 4096,
) -> ChatNVIDIA:
    """Instantiate a ChatNVIDIA model with sensible defaults.

    Parameters
    ----------
    api_key:
        The API key to authenticate with NVIDIA NIM.  If omitted,
        ``NVIDIA_API_KEY`` from the environment is required.
    model_name:
        The fully qualified model name.  Defaults to
        :data:`~deep_search_agent.config.MODEL_NAME`.
    temperature:
        Randomness parameter for generation.
    top_p:
        Nucleus sampling parameter.
    max_completion_tokens:
        Maximum number of tokens to generate.

    Raises
    ------
    ConfigurationError
        If no API key is given and ``NVIDIA_API_KEY`` is unset.
    """
    api_key = api_key or config.NVIDIA_API_KEY or config.require("NVIDIA_API_KEY")
    model_name = model_name or config.MODEL_NAME
    log.debug(
        "Creating ChatNVIDIA model with model_name=%s, temperature=%s, top_p=%s",
        model_name,
        temperature,
        top_p,
    )
    return ChatNVIDIA(
        api_key=api_key,
        model=model_name,
        temperature=temperature,
        top_p=top_p,
        max_completion_tokens=max_completion_tokens,
    )
