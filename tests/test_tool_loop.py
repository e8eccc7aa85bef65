from __future__ import annotations

import asyncio
import json

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from deep_search_agent.agent_loop import LoopState
from deep_search_agent.context import ResearchContext
from deep_search_agent.exceptions import ActionDecodeError
from deep_search_agent.schemas import UIMessage
from deep_search_agent.tool_loop import ToolCallingAgent, run_tool_loop, to_chat_messages
from deep_search_agent.tools import build_tools

from agent_test_utils import FakeChatModel, FakeSearchClient, collect, user_message


def _tool_reply(name: str, args: dict, call_id: str) -> AIMessage:
    return AIMessage(content="", tool_calls=[{"name": name, "args": args, "id": call_id}])


def _run(replies, client=None, **kwargs):
    llm = FakeChatModel(messages=iter(replies))
    client = client or FakeSearchClient()
    events = []

    async def go():
        result = await run_tool_loop(
            [user_message("what changed in python 3.13?")],
            llm=llm,
            search_client=client,
            on_event=events.append,
            **kwargs,
        )
        return result, await collect(result.text_stream)

    result, text = asyncio.run(go())
    return result, text, client, events


def test_tools_record_evidence_in_context():
    client = FakeSearchClient(results_per_search=3)
    ctx = ResearchContext(messages=[])
    search_web, crawl_pages = build_tools(client, context=ctx, num_results=7)

    assert search_web.name == "searchWeb"
    assert crawl_pages.name == "crawlPages"
    found = asyncio.run(search_web.ainvoke({"query": "python"}))
    asyncio.run(crawl_pages.ainvoke({"urls": ["https://a.example", "https://b.example"]}))

    assert len(found) == 3 and found[0]["url"] == "https://example.com/1/0"
    assert client.search_calls == [{"query": "python", "num_results": 7}]
    assert client.crawl_calls == [["https://a.example", "https://b.example"]]
    assert len(ctx.search_results) == 3
    assert len(ctx.crawl_results) == 2


def test_tool_loop_runs_tools_then_answers():
    result, text, client, events = _run(
        [
            _tool_reply("searchWeb", {"query": "python 3.13 changes"}, "c1"),
            _tool_reply("crawlPages", {"urls": ["https://docs.python.org/3.13/whatsnew"]}, "c2"),
            AIMessage(content="Python 3.13 adds a [free-threaded build](https://docs.python.org)."),
        ]
    )

    assert result.state is LoopState.ANSWERING
    assert text == "Python 3.13 adds a [free-threaded build](https://docs.python.org)."
    assert result.context.step == 2
    assert client.search_calls == [{"query": "python 3.13 changes", "num_results": 10}]
    assert client.crawl_calls == [["https://docs.python.org/3.13/whatsnew"]]
    assert [(e.kind, e.action.type) for e in events] == [
        ("action", "search"),
        ("result", "search"),
        ("action", "crawl"),
        ("result", "crawl"),
    ]
    assert len(events[1].results) == 2


def test_forced_answer_counts_against_the_step_ceiling():
    replies = [_tool_reply("searchWeb", {"query": f"q{i}"}, f"c{i}") for i in range(2)]
    replies.append(AIMessage(content="Best effort answer."))
    replies.append(_tool_reply("searchWeb", {"query": "never asked"}, "c9"))
    result, text, client, _ = _run(replies, max_steps=3)

    assert result.state is LoopState.EXHAUSTED
    assert len(client.search_calls) == 2
    assert result.context.step == 2
    assert text == "Best effort answer."


def test_single_step_budget_answers_without_tools():
    result, text, client, _ = _run([AIMessage(content="Straight answer.")], max_steps=1)
    assert result.state is LoopState.EXHAUSTED
    assert client.search_calls == []
    assert text == "Straight answer."


def test_answer_turn_is_streamed_in_chunks():
    llm = FakeChatModel(
        messages=iter(
            [
                _tool_reply("searchWeb", {"query": "python 3.13"}, "c1"),
                AIMessage(content="Python 3.13 ships an experimental JIT."),
            ]
        )
    )

    async def go():
        result = await run_tool_loop([user_message("3.13?")], llm=llm, search_client=FakeSearchClient())
        return result, [chunk async for chunk in result.text_stream]

    result, chunks = asyncio.run(go())
    assert result.state is LoopState.ANSWERING
    assert len(chunks) > 1
    assert "".join(chunks) == "Python 3.13 ships an experimental JIT."


def test_unknown_tool_is_a_decode_error():
    with pytest.raises(ActionDecodeError):
        _run([_tool_reply("deleteEverything", {}, "c1")])


def test_tool_call_with_empty_query_is_rejected_before_search():
    client = FakeSearchClient()
    with pytest.raises(ActionDecodeError):
        _run([_tool_reply("searchWeb", {"query": ""}, "c1")], client=client)
    assert client.search_calls == []


def test_to_chat_messages_maps_roles():
    converted = to_chat_messages(
        [
            UIMessage(id="0", role="system", parts=[{"type": "text", "text": "be brief"}]),
            user_message("hi"),
            UIMessage(id="2", role="assistant", parts=[{"type": "text", "text": "hello"}]),
        ]
    )
    assert [type(m) for m in converted] == [SystemMessage, HumanMessage, AIMessage]
    assert [m.content for m in converted] == ["be brief", "hi", "hello"]


def test_tool_calling_agent_runs():
    llm = FakeChatModel(messages=iter([AIMessage(content="Direct answer.")]))
    agent = ToolCallingAgent(llm=llm, search_client=FakeSearchClient(), max_steps=15, num_results=10)

    async def go():
        result = await agent.run([user_message("2+2?")])
        return result, await collect(result.text_stream)

    result, text = asyncio.run(go())
    assert result.state is LoopState.ANSWERING
    assert text == "Direct answer."


def test_tool_results_are_fed_back_as_json():
    captured = {}

    class _Capturing(FakeChatModel):
        def _stream(self, messages, stop=None, run_manager=None, **kwargs):
            captured.setdefault("histories", []).append(list(messages))
            yield from super()._stream(messages, stop=stop, run_manager=run_manager, **kwargs)

    llm = _Capturing(
        messages=iter([_tool_reply("searchWeb", {"query": "q"}, "c1"), AIMessage(content="done")])
    )

    async def go():
        result = await run_tool_loop([user_message("q?")], llm=llm, search_client=FakeSearchClient())
        return await collect(result.text_stream)

    assert asyncio.run(go()) == "done"
    last_history = captured["histories"][-1]
    tool_message = last_history[-1]
    assert isinstance(tool_message, ToolMessage)
    assert tool_message.tool_call_id == "c1"
    assert json.loads(tool_message.content)[0]["url"] == "https://example.com/1/0"
