"""Per-request evidence accumulator.

A :class:`ResearchContext` is created at the start of one chat request
from the conversation so far, collects every search and crawl result
gathered by the agent loop, and is thrown away once the answer has been
produced.  It is owned by a single loop run and never shared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from .schemas import CrawlResult, SearchResult, UIMessage


DEFAULT_MAX_STEPS = 10

CRAWL_SEPARATOR = "\n\n---\n\n"


@dataclass
class ResearchContext:
    messages: Sequence[UIMessage]
    max_steps: int = DEFAULT_MAX_STEPS
    step: int = 0
    search_results: List[SearchResult] = field(default_factory=list)
    crawl_results: List[CrawlResult] = field(default_factory=list)

    def add_search_results(self, results: Iterable[SearchResult]) -> None:
        self.search_results.extend(results)

    def add_crawls(self, results: Iterable[CrawlResult]) -> None:
        self.crawl_results.extend(results)

    def should_stop(self) -> bool:
        return self.step >= self.max_steps

    def increment_step(self) -> None:
        self.step += 1

    def render_search_history(self) -> str:
        return "\n".join(
            f"- {result.title or ''}: {result.url}" for result in self.search_results
        )

    def render_crawl_history(self) -> str:
        return CRAWL_SEPARATOR.join(
            f"## {crawl.title or crawl.url}\nURL: {crawl.url}\n\n{crawl.text}"
            for crawl in self.crawl_results
        )

    def render_message_history(self) -> str:
        return "\n".join(f"{message.role}: {message.text()}" for message in self.messages)
