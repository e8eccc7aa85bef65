"""Tool-calling variant of the agent loop.

Instead of asking for one structured action per step, the model is
given the ``searchWeb`` and ``crawlPages`` tools and decides itself
when to call them.  Every model call counts against the step ceiling;
the run stops as soon as the model replies without tool calls, or
when only one call is left, which is then made without tools to
produce a best-effort answer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, List, Optional, Sequence, Tuple

from langchain_core.messages import (
    AIMessage,
    AIMessageChunk,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
    message_chunk_to_message,
)

from . import config
from .agent_loop import AgentEvent, AgentLoopResult, EventCallback, LoopState, notify_event
from .context import ResearchContext
from .exceptions import ActionDecodeError
from .logger import get_logger
from .prompts import PROMPTS
from .schemas import Action, UIMessage, decode_action
from .tools import build_tools
from .utils import current_datetime_label


log = get_logger(__name__)

_TOOL_ACTIONS = {"searchWeb": "search", "crawlPages": "crawl"}


def to_chat_messages(messages: Sequence[UIMessage]) -> List[BaseMessage]:
    """Convert UI messages to LangChain chat messages (text parts only)."""
    converted: List[BaseMessage] = []
    for message in messages:
        text = message.text()
        if message.role == "user":
            converted.append(HumanMessage(content=text))
        elif message.role == "assistant":
            converted.append(AIMessage(content=text))
        else:
            converted.append(SystemMessage(content=text))
    return converted


def message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    return "".join(
        block.get("text", "") if isinstance(block, dict) else str(block) for block in content
    )


def _tool_call_action(call: dict) -> Action:
    kind = _TOOL_ACTIONS.get(call.get("name", ""))
    if kind is None:
        raise ActionDecodeError(f"Model called an unknown tool: {call.get('name')!r}", call)
    args = call.get("args") or {}
    return decode_action({"type": kind, "reasoning": "", **args})


async def _single_chunk(text: str) -> AsyncIterator[str]:
    if text:
        yield text


async def _stream_text(llm: Any, history: List[BaseMessage]) -> AsyncIterator[str]:
    async for chunk in llm.astream(history):
        text = message_text(chunk)
        if text:
            yield text


async def _open_turn(
    bound: Any, history: List[BaseMessage]
) -> Tuple[Optional[AIMessageChunk], Optional[AsyncIterator[Any]]]:
    """Read one model turn until its kind is known.

    Returns the chunks aggregated so far and, when the model started
    answering in text, the still open stream.  A turn whose first
    content is a tool call is read to the end and returned with ``None``.
    """
    chunks = bound.astream(history)
    aggregate: Optional[AIMessageChunk] = None
    async for chunk in chunks:
        aggregate = chunk if aggregate is None else aggregate + chunk
        if getattr(chunk, "tool_call_chunks", None):
            async for rest in chunks:
                aggregate = aggregate + rest
            return aggregate, None
        if message_text(chunk):
            return aggregate, chunks
    return aggregate, None


async def _answer_stream(first: AIMessageChunk, rest: AsyncIterator[Any]) -> AsyncIterator[str]:
    text = message_text(first)
    if text:
        yield text
    ignored = False
    async for chunk in rest:
        if getattr(chunk, "tool_call_chunks", None) and not ignored:
            log.warning("Model requested tools after it started answering; ignoring them")
            ignored = True
        text = message_text(chunk)
        if text:
            yield text


async def run_tool_loop(
    messages: Sequence[UIMessage],
    *,
    llm: Any,
    search_client: Any,
    max_steps: int = 15,
    num_results: int = 10,
    on_event: Optional[EventCallback] = None,
) -> AgentLoopResult:
    """Let the model call ``searchWeb`` / ``crawlPages`` until it answers.

    ``max_steps`` bounds the total number of model calls, the forced
    answer included: at most ``max_steps - 1`` turns may use tools.
    The answering turn is streamed chunk by chunk.
    """
    # The last model call is kept for the forced answer.
    context = ResearchContext(messages=list(messages), max_steps=max(max_steps - 1, 0))
    tools = build_tools(search_client, context=context, num_results=num_results)
    tools_by_name = {t.name: t for t in tools}
    bound = llm.bind_tools(tools)

    system = PROMPTS["tool-agent"].format(current_date=current_datetime_label())
    history: List[BaseMessage] = [SystemMessage(content=system), *to_chat_messages(messages)]
    actions: List[Action] = []

    while not context.should_stop():
        aggregate, rest = await _open_turn(bound, history)
        if rest is not None:
            log.info("Model answered after %s tool step(s)", context.step)
            return AgentLoopResult(
                state=LoopState.ANSWERING,
                context=context,
                text_stream=_answer_stream(aggregate, rest),
                actions=actions,
            )

        reply = message_chunk_to_message(aggregate) if aggregate is not None else AIMessage(content="")
        history.append(reply)
        tool_calls = getattr(reply, "tool_calls", None) or []
        if not tool_calls:
            log.info("Model answered after %s tool step(s)", context.step)
            return AgentLoopResult(
                state=LoopState.ANSWERING,
                context=context,
                text_stream=_single_chunk(message_text(reply)),
                actions=actions,
            )

        # Calls of one turn run sequentially, in the order the model gave them.
        for call in tool_calls:
            action = _tool_call_action(call)
            actions.append(action)
            notify_event(on_event, AgentEvent("action", context.step + 1, action))
            collected = context.search_results if action.type == "search" else context.crawl_results
            seen = len(collected)
            output = await tools_by_name[call["name"]].ainvoke(call.get("args") or {})
            notify_event(on_event, AgentEvent("result", context.step + 1, action, list(collected[seen:])))
            history.append(ToolMessage(content=json.dumps(output), tool_call_id=call.get("id") or ""))
        context.increment_step()

    log.warning("Tool step budget of %s model calls reached; forcing an answer", max_steps)
    history.append(HumanMessage(content=PROMPTS["answer-exhausted"].strip()))
    return AgentLoopResult(
        state=LoopState.EXHAUSTED,
        context=context,
        text_stream=_stream_text(llm, history),
        actions=actions,
    )


@dataclass
class ToolCallingAgent:
    """Tool-calling counterpart of :class:`~deep_search_agent.agent_loop.SearchAgent`."""

    llm: Any
    search_client: Any
    max_steps: int = field(default_factory=lambda: config.TOOL_MAX_STEPS)
    num_results: int = field(default_factory=lambda: config.NUM_SEARCH_RESULTS)

    async def run(
        self,
        messages: Sequence[UIMessage],
        *,
        on_event: Optional[EventCallback] = None,
    ) -> AgentLoopResult:
        return await run_tool_loop(
            messages,
            llm=self.llm,
            search_client=self.search_client,
            max_steps=self.max_steps,
            num_results=self.num_results,
            on_event=on_event,
        )
