"""Top-level package for the deep search agent.

This package provides a conversational web-search assistant: a chat
front end backed by an iterative search → crawl → answer loop that
calls a hosted language model (ChatNVIDIA through LangChain) and the
Tavily search/extract API.

The repository is organised into logical modules:

* :mod:`config` manages environment variable loading
* :mod:`logger` initialises the package logger
* :mod:`schemas` defines messages, search/crawl results and actions
* :mod:`context` holds the per-request evidence accumulator
* :mod:`selector`, :mod:`executor` and :mod:`answer` implement one
  step of the loop each
* :mod:`agent_loop` runs the action loop; :mod:`tool_loop` is the
  tool-calling variant built on :mod:`tools`
* :mod:`search_client` wraps Tavily with bounded retries
* :mod:`stream`, :mod:`db` and :mod:`api` serve the chat over HTTP
* :mod:`cli` and :mod:`ui_streamlit` are the local front ends

For an example of how to use this package, see the ``cli`` module.
"""

from importlib.metadata import version as _get_version

from .agent_factory import create_agent  # noqa: F401
from .agent_loop import SearchAgent, run_agent_loop  # noqa: F401

__all__ = [
    "create_agent",
    "run_agent_loop",
    "SearchAgent",
]

try:
    __version__ = _get_version("deep-search-agent")
except Exception:
    # Package not installed. Provide a sensible default.
    __version__ = "0.0.0"
