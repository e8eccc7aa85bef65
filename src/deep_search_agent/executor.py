"""Action execution: run a search or crawl and record the evidence."""

from __future__ import annotations

from typing import Any, List, Union

from .context import ResearchContext
from .logger import get_logger
from .schemas import Action, AnswerAction, CrawlAction, CrawlResult, SearchAction, SearchResult


log = get_logger(__name__)


async def execute_action(
    action: Action,
    context: ResearchContext,
    search_client: Any,
    *,
    num_results: int = 10,
) -> Union[List[SearchResult], List[CrawlResult], None]:
    """Perform ``action`` against the provider and append what it returns.

    Returns the new results for ``search`` / ``crawl`` and ``None`` for
    ``answer``, which leaves the context untouched.  Provider errors
    propagate to the caller.
    """
    if isinstance(action, SearchAction):
        results = await search_client.search(action.query, num_results=num_results)
        context.add_search_results(results)
        return results
    if isinstance(action, CrawlAction):
        crawls = await search_client.get_contents(list(action.urls))
        context.add_crawls(crawls)
        return crawls
    if isinstance(action, AnswerAction):
        return None
    raise TypeError(f"Unknown action: {action!r}")
