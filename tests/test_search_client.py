"""Tests for the Tavily-backed WebSearchClient."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import httpx
import pytest
import tavily.errors

from deep_search_agent.exceptions import SearchProviderError
from deep_search_agent.schemas import CrawlResult, SearchResult
from deep_search_agent.search_client import WebSearchClient


class _FakeTavily:
    def __init__(self, search_responses: List[Any] = (), extract_responses: List[Any] = ()) -> None:
        self.search_responses = list(search_responses)
        self.extract_responses = list(extract_responses)
        self.search_calls: List[Dict[str, Any]] = []
        self.extract_calls: List[List[str]] = []

    @staticmethod
    def _next(responses: List[Any]) -> Any:
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def search(self, query: str, **kwargs: Any) -> Any:
        self.search_calls.append({"query": query, **kwargs})
        return self._next(self.search_responses)

    async def extract(self, urls: List[str], **kwargs: Any) -> Any:
        self.extract_calls.append(list(urls))
        return self._next(self.extract_responses)


def _client(fake: _FakeTavily, attempts: int = 3) -> WebSearchClient:
    return WebSearchClient(client=fake, retry_attempts=attempts, retry_min_wait=0, retry_max_wait=0)


SEARCH_PAYLOAD = {
    "query": "q",
    "results": [
        {"title": "First", "url": "https://one.example", "content": "snippet", "score": 0.91},
        {"title": "", "url": "https://two.example", "score": None, "published_date": "2025-01-02"},
        {"title": "no url"},
    ],
}


def test_search_normalises_results():
    fake = _FakeTavily(search_responses=[SEARCH_PAYLOAD])
    results = asyncio.run(_client(fake).search("q", num_results=10))

    assert results == [
        SearchResult(id="https://one.example", url="https://one.example", title="First", score=0.91),
        SearchResult(id="https://two.example", url="https://two.example", published_date="2025-01-02"),
    ]
    assert fake.search_calls[0]["max_results"] == 10
    assert fake.search_calls[0]["include_raw_content"] is False


def test_get_contents_is_one_batched_call():
    fake = _FakeTavily(
        extract_responses=[
            {
                "results": [
                    {"url": "https://a.example", "raw_content": "alpha"},
                    {"url": "https://b.example", "raw_content": "beta"},
                ],
                "failed_results": [{"url": "https://c.example", "error": "blocked"}],
            }
        ]
    )
    crawls = asyncio.run(
        _client(fake).get_contents(["https://a.example", "https://b.example", "https://c.example"])
    )

    assert fake.extract_calls == [["https://a.example", "https://b.example", "https://c.example"]]
    assert crawls == [
        CrawlResult(id="https://a.example", url="https://a.example", text="alpha"),
        CrawlResult(id="https://b.example", url="https://b.example", text="beta"),
    ]


def test_transient_errors_are_retried():
    fake = _FakeTavily(search_responses=[httpx.ConnectError("down"), TimeoutError(), SEARCH_PAYLOAD])
    results = asyncio.run(_client(fake).search("q"))
    assert len(results) == 2
    assert len(fake.search_calls) == 3


def test_tavily_timeouts_are_retried():
    fake = _FakeTavily(search_responses=[tavily.errors.TimeoutError(10), SEARCH_PAYLOAD])
    results = asyncio.run(_client(fake).search("q"))
    assert len(results) == 2
    assert len(fake.search_calls) == 2


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.tavily.com/extract")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"status {code}", request=request, response=response)


def test_server_errors_are_retried_but_client_errors_are_not():
    fake = _FakeTavily(extract_responses=[_status_error(503), {"results": []}])
    assert asyncio.run(_client(fake).get_contents(["https://a.example"])) == []
    assert len(fake.extract_calls) == 2

    fake = _FakeTavily(extract_responses=[_status_error(400), {"results": []}])
    with pytest.raises(SearchProviderError):
        asyncio.run(_client(fake).get_contents(["https://a.example"]))
    assert len(fake.extract_calls) == 1


def test_retries_stop_after_the_configured_attempts():
    fake = _FakeTavily(search_responses=[httpx.ReadTimeout("slow")] * 5)
    with pytest.raises(SearchProviderError):
        asyncio.run(_client(fake, attempts=2).search("q"))
    assert len(fake.search_calls) == 2


def test_non_transient_errors_are_not_retried():
    fake = _FakeTavily(search_responses=[ValueError("bad api key"), SEARCH_PAYLOAD])
    with pytest.raises(SearchProviderError) as info:
        asyncio.run(_client(fake).search("q"))
    assert isinstance(info.value.__cause__, ValueError)
    assert len(fake.search_calls) == 1


def test_unexpected_payload_is_a_provider_error():
    fake = _FakeTavily(search_responses=["not a dict"])
    with pytest.raises(SearchProviderError):
        asyncio.run(_client(fake).search("q"))


def test_missing_api_key_is_a_configuration_error(monkeypatch):
    from deep_search_agent import config
    from deep_search_agent.exceptions import ConfigurationError

    monkeypatch.setattr(config, "TAVILY_API_KEY", None)
    monkeypatch.delenv("TAVILY_API_KEY", raising=False)
    monkeypatch.setattr(config, "_load_env", lambda: None)
    with pytest.raises(ConfigurationError, match="TAVILY_API_KEY"):
        WebSearchClient()
