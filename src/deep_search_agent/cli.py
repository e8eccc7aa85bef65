"""Command-line interface for the deep search agent.

Run this module as a script to chat with the agent in your terminal.
The script loads configuration from environment variables (see
:mod:`deep_search_agent.config`), creates the agent and runs the
conversation loop, printing each search and crawl as it happens and
streaming the answer.  Errors during a turn are logged and printed to
stderr; the conversation continues with the next question.

Usage::

    $ python -m deep_search_agent.cli
    Deep search agent ready. Type a question (or 'quit').
    > what is the best electric commuter bike for Londoners?
    [search] best electric commuter bike London
    ...

    $ python -m deep_search_agent.cli --question "what is ARC-AGI?"
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any, List, Optional

from .agent_factory import create_agent
from .agent_loop import AgentEvent
from .logger import get_logger
from .schemas import UIMessage
from .utils import new_message_id, normalize_short


log = get_logger(__name__)


def _print_event(event: AgentEvent) -> None:
    action = event.action
    if event.kind == "action":
        if action.type == "search":
            print(f"[search] {action.query}")
        elif action.type == "crawl":
            print(f"[crawl] {len(action.urls)} page(s): {', '.join(action.urls)}")
        else:
            print(f"[answer] {normalize_short(action.reasoning, 120)}")
    elif event.kind == "result":
        print(f"  -> {len(event.results or [])} result(s)")


async def ask(agent: Any, messages: List[UIMessage]) -> str:
    """Run one turn, streaming the answer to stdout, and return its text."""
    result = await agent.run(messages, on_event=_print_event)
    if result.exhausted:
        print("[step budget exhausted, answering with what was found]")
    print()
    chunks: List[str] = []
    async for chunk in result.text_stream:
        chunks.append(chunk)
        print(chunk, end="", flush=True)
    print("\n")
    return "".join(chunks)


def _text_message(role: str, text: str) -> UIMessage:
    return UIMessage(id=new_message_id(), role=role, parts=[{"type": "text", "text": text}])


async def _main(question: Optional[str] = None) -> None:
    log.info("Initialising agent...")
    agent = create_agent()

    if question:
        await ask(agent, [_text_message("user", question)])
        print("Done!")
        return

    print("Deep search agent ready. Type a question (or 'quit').\n")
    history: List[UIMessage] = []
    while True:
        try:
            q = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            return
        if q.lower() in {"quit", "exit", "q"}:
            print("Goodbye!")
            return
        if not q:
            print("Please enter a non-empty question.")
            continue
        history.append(_text_message("user", q))
        try:
            answer = await ask(agent, history)
        except Exception as e:
            log.exception("Error during conversation: %s", e)
            print(f"[ERROR] {e}", file=sys.stderr)
            history.pop()
            continue
        history.append(_text_message("assistant", answer))


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Chat with the deep search agent.")
    parser.add_argument("-q", "--question", help="ask a single question and exit")
    args = parser.parse_args(argv)
    asyncio.run(_main(args.question))


if __name__ == "__main__":
    main()
