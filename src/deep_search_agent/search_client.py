"""Web search and crawl provider backed by Tavily.

:class:`WebSearchClient` is the only place that talks to the search
provider.  It wraps Tavily's async client, normalises its records into
:class:`~deep_search_agent.schemas.SearchResult` and
:class:`~deep_search_agent.schemas.CrawlResult`, and retries transient
transport failures with bounded exponential backoff.  Anything that
still fails is raised as
:class:`~deep_search_agent.exceptions.SearchProviderError`.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Type

import httpx
from tavily import AsyncTavilyClient
from tavily.errors import TimeoutError as TavilyTimeoutError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from . import config
from .exceptions import SearchProviderError
from .logger import get_logger
from .schemas import CrawlResult, SearchResult


log = get_logger(__name__)

TRANSIENT_ERRORS: Tuple[Type[BaseException], ...] = (
    httpx.TransportError,
    TavilyTimeoutError,
    TimeoutError,
    ConnectionError,
)


def is_transient(exc: BaseException) -> bool:
    """True for failures worth another attempt: transport errors and 5xx replies."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, TRANSIENT_ERRORS)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    log.warning(
        "Search provider call failed (attempt %s): %s. Retrying...",
        state.attempt_number,
        exc,
    )


def _to_search_result(raw: Dict[str, Any]) -> Optional[SearchResult]:
    url = raw.get("url")
    if not url:
        return None
    score = raw.get("score")
    return SearchResult(
        id=str(raw.get("id") or url),
        url=url,
        title=raw.get("title") or None,
        score=float(score) if score is not None else None,
        published_date=raw.get("published_date") or None,
        author=raw.get("author") or None,
    )


def _to_crawl_result(raw: Dict[str, Any]) -> Optional[CrawlResult]:
    url = raw.get("url")
    if not url:
        return None
    return CrawlResult(
        id=str(raw.get("id") or url),
        url=url,
        title=raw.get("title") or None,
        published_date=raw.get("published_date") or None,
        author=raw.get("author") or None,
        text=raw.get("raw_content") or raw.get("text") or "",
    )


class WebSearchClient:
    """Search the web and fetch full page text through Tavily.

    Parameters
    ----------
    api_key:
        Tavily API key; defaults to ``TAVILY_API_KEY``.  Ignored when
        ``client`` is given.
    client:
        A ready-made client exposing async ``search`` and ``extract``
        (used by tests and by callers that share one client).
    retry_attempts:
        Total attempts per call for transient failures.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        client: Any = None,
        retry_attempts: Optional[int] = None,
        retry_min_wait: float = 0.5,
        retry_max_wait: float = 4.0,
    ) -> None:
        if client is None:
            key = api_key or config.TAVILY_API_KEY or config.require("TAVILY_API_KEY")
            client = AsyncTavilyClient(api_key=key)
        self._client = client
        self.retry_attempts = retry_attempts or config.RETRY_ATTEMPTS
        self._retry_min_wait = retry_min_wait
        self._retry_max_wait = retry_max_wait

    async def _call(self, label: str, fn: Callable[[], Awaitable[Dict[str, Any]]]) -> Dict[str, Any]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=0.5, min=self._retry_min_wait, max=self._retry_max_wait),
            retry=retry_if_exception(is_transient),
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await fn()
        except Exception as exc:
            log.error("Search provider %s failed: %s", label, exc)
            raise SearchProviderError(f"{label} failed: {exc}") from exc
        if not isinstance(response, dict):
            raise SearchProviderError(f"{label} returned an unexpected payload: {type(response).__name__}")
        return response

    async def search(self, query: str, *, num_results: Optional[int] = None) -> List[SearchResult]:
        """Return up to ``num_results`` results for ``query`` (no page text)."""
        limit = num_results or config.NUM_SEARCH_RESULTS
        log.info("Searching the web: %r (max %s results)", query, limit)
        response = await self._call(
            "search",
            lambda: self._client.search(query, max_results=limit, include_raw_content=False),
        )
        results = [r for r in map(_to_search_result, response.get("results") or []) if r]
        log.debug("Search returned %s result(s)", len(results))
        return results

    async def get_contents(self, urls: Sequence[str]) -> List[CrawlResult]:
        """Fetch the full text of every URL in one batched request."""
        url_list = list(urls)
        log.info("Crawling %s page(s)", len(url_list))
        response = await self._call("crawl", lambda: self._client.extract(urls=url_list))
        failed = response.get("failed_results") or []
        if failed:
            log.warning("Crawl could not fetch %s page(s)", len(failed))
        return [r for r in map(_to_crawl_result, response.get("results") or []) if r]
