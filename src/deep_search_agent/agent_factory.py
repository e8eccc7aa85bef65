"""Factory functions for constructing the deep search agent.

This module provides a high-level ``create_agent`` function that
assembles the ChatNVIDIA model and the Tavily search client into a
ready-to-use agent.  Depending on ``DEEP_SEARCH_AGENT_MODE`` this is
either the structured action loop (:class:`SearchAgent`) or the
tool-calling variant (:class:`ToolCallingAgent`); both expose the same
``run(messages, on_event=...)`` coroutine.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from . import config
from .agent_loop import SearchAgent
from .exceptions import ConfigurationError
from .logger import get_logger
from .models import create_llm
from .search_client import WebSearchClient
from .tool_loop import ToolCallingAgent


log = get_logger(__name__)


def create_agent(
    *,
    nvidia_api_key: Optional[str] = None,
    tavily_api_key: Optional[str] = None,
    mode: Optional[str] = None,
    llm: Any = None,
    search_client: Any = None,
    max_steps: Optional[int] = None,
) -> Union[SearchAgent, ToolCallingAgent]:
    """Compose and return an agent with all dependencies.

    Parameters
    ----------
    nvidia_api_key:
        Override the NVIDIA API key used when ``llm`` is not given.
    tavily_api_key:
        Override the Tavily API key used when ``search_client`` is not given.
    mode:
        ``"loop"`` or ``"tools"``; defaults to ``DEEP_SEARCH_AGENT_MODE``.
    llm, search_client:
        Pre-built collaborators, mainly for tests.
    max_steps:
        Step ceiling; defaults to the mode's configured ceiling.
    """
    mode = (mode or config.AGENT_MODE).lower()
    if mode not in {"loop", "tools"}:
        raise ConfigurationError(f"Unknown agent mode {mode!r}; expected 'loop' or 'tools'")

    if llm is None:
        log.info("Creating LLM model...")
        llm = create_llm(api_key=nvidia_api_key)
    if search_client is None:
        log.info("Creating Tavily search client...")
        search_client = WebSearchClient(api_key=tavily_api_key)

    if mode == "tools":
        agent: Union[SearchAgent, ToolCallingAgent] = ToolCallingAgent(
            llm=llm,
            search_client=search_client,
            max_steps=max_steps or config.TOOL_MAX_STEPS,
        )
    else:
        agent = SearchAgent(
            llm=llm,
            search_client=search_client,
            max_steps=max_steps or config.MAX_STEPS,
        )
    log.debug("Composed %s with max_steps=%s", type(agent).__name__, agent.max_steps)
    return agent
