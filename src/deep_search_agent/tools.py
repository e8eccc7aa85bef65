from __future__ import annotations

from typing import Any, List, Optional

from langchain_core.tools import BaseTool, tool

from .context import ResearchContext
from .logger import get_logger


log = get_logger(__name__)


def build_tools(
    search_client: Any,
    *,
    context: Optional[ResearchContext] = None,
    num_results: int = 10,
) -> List[BaseTool]:
    """Return the ``searchWeb`` and ``crawlPages`` tools for tool-calling models.

    When ``context`` is given every result is also recorded in it, so
    the tool-calling loop keeps the same evidence trail as the action
    loop.
    """

    @tool("searchWeb")
    async def search_web(query: str) -> list[dict]:
        """Search the web for information.

        query: the query to search the web for
        """
        results = await search_client.search(query, num_results=num_results)
        if context is not None:
            context.add_search_results(results)
        return [r.model_dump() for r in results]

    @tool("crawlPages")
    async def crawl_pages(urls: list[str]) -> list[dict]:
        """Crawl web pages to get their full content. Pass ALL URLs you want to crawl in a single call.

        urls: array of URLs to crawl (batch multiple URLs in one call for efficiency)
        """
        crawls = await search_client.get_contents(urls)
        if context is not None:
            context.add_crawls(crawls)
        return [c.model_dump() for c in crawls]

    log.debug("Built tools: %s, %s", search_web.name, crawl_pages.name)
    return [search_web, crawl_pages]
