"""Agent control loop for the deep search agent.

This module drives the search → crawl → answer cycle for one chat
request.  Each iteration asks the model for exactly one action, runs it
against the search provider and records the evidence in a
:class:`~deep_search_agent.context.ResearchContext`.  The loop ends in
one of two terminal states:

* ``ANSWERING`` - the model chose to answer; the answer is streamed
  normally.
* ``EXHAUSTED`` - the step ceiling was reached without an answer; one
  best-effort answer is streamed with the ``exhausted`` flag set.

Exactly one answer stream is produced per run.  Nothing is retried or
caught here: provider and decode errors abort the request.

Consumers can call :func:`run_agent_loop` directly with prepared
chains, or use :class:`SearchAgent`, which builds the chains from a
chat model.  For CLI usage, see :mod:`deep_search_agent.cli`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Callable, List, Optional, Sequence, Union

from . import config
from .answer import build_answer_chain, stream_answer
from .context import ResearchContext
from .executor import execute_action
from .logger import get_logger
from .schemas import Action, AnswerAction, CrawlResult, SearchResult, UIMessage
from .selector import build_action_chain, get_next_action


log = get_logger(__name__)


class LoopState(str, Enum):
    RUNNING = "running"
    ANSWERING = "answering"
    EXHAUSTED = "exhausted"


@dataclass
class AgentEvent:
    """Progress notification sent to ``on_event`` callbacks.

    ``kind`` is ``"action"`` right after a decision and ``"result"``
    once a search or crawl has returned (``results`` is then set).
    """

    kind: str
    step: int
    action: Action
    results: Optional[Union[List[SearchResult], List[CrawlResult]]] = None


EventCallback = Callable[[AgentEvent], None]


@dataclass
class AgentLoopResult:
    state: LoopState
    context: ResearchContext
    text_stream: AsyncIterator[str]
    actions: List[Action] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.state is LoopState.EXHAUSTED


def notify_event(on_event: Optional[EventCallback], event: AgentEvent) -> None:
    if on_event is None:
        return
    try:
        on_event(event)
    except Exception as exc:
        log.warning("Event callback failed for %s event: %s", event.kind, exc)


async def run_agent_loop(
    messages: Sequence[UIMessage],
    *,
    action_chain: Any,
    answer_chain: Any,
    search_client: Any,
    max_steps: int = 10,
    num_results: int = 10,
    on_event: Optional[EventCallback] = None,
) -> AgentLoopResult:
    """Run the loop until an answer is chosen or the step budget is spent.

    The returned :class:`AgentLoopResult` carries the terminal state and
    a lazily evaluated ``text_stream``; the answer call is made when the
    caller starts iterating it.
    """
    context = ResearchContext(messages=list(messages), max_steps=max_steps)
    actions: List[Action] = []
    state = LoopState.RUNNING

    while not context.should_stop():
        action = await get_next_action(context, action_chain)
        actions.append(action)
        notify_event(on_event, AgentEvent("action", context.step + 1, action))

        if isinstance(action, AnswerAction):
            state = LoopState.ANSWERING
            break

        results = await execute_action(action, context, search_client, num_results=num_results)
        notify_event(on_event, AgentEvent("result", context.step + 1, action, results))
        context.increment_step()

    if state is LoopState.RUNNING:
        state = LoopState.EXHAUSTED
        log.warning("Step budget of %s exhausted without an answer; forcing one", max_steps)
    else:
        log.info("Answering after %s step(s)", context.step)

    stream = stream_answer(context, answer_chain, exhausted=state is LoopState.EXHAUSTED)
    return AgentLoopResult(state=state, context=context, text_stream=stream, actions=actions)


@dataclass
class SearchAgent:
    """Chat model and search client bundled with the loop settings."""

    llm: Any
    search_client: Any
    max_steps: int = field(default_factory=lambda: config.MAX_STEPS)
    num_results: int = field(default_factory=lambda: config.NUM_SEARCH_RESULTS)
    retry_attempts: int = field(default_factory=lambda: config.RETRY_ATTEMPTS)

    def __post_init__(self) -> None:
        self.action_chain = build_action_chain(self.llm, retry_attempts=self.retry_attempts)
        self.answer_chain = build_answer_chain(self.llm)

    async def run(
        self,
        messages: Sequence[UIMessage],
        *,
        on_event: Optional[EventCallback] = None,
    ) -> AgentLoopResult:
        return await run_agent_loop(
            messages,
            action_chain=self.action_chain,
            answer_chain=self.answer_chain,
            search_client=self.search_client,
            max_steps=self.max_steps,
            num_results=self.num_results,
            on_event=on_event,
        )
