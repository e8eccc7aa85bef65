from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import streamlit as st

from deep_search_agent import config
from deep_search_agent.agent_factory import create_agent
from deep_search_agent.agent_loop import AgentEvent
from deep_search_agent.db import MessageStore
from deep_search_agent.logger import get_logger
from deep_search_agent.schemas import UIMessage
from deep_search_agent.stream import UIMessageStreamWriter
from deep_search_agent.utils import new_message_id, normalize_short


log = get_logger(__name__)

AVATARS = {"user": "🧑", "assistant": "🤖", "system": "⚙️"}


def _init_state() -> None:
    if "agent" not in st.session_state:
        st.session_state.agent = None
    if "store" not in st.session_state:
        st.session_state.store = MessageStore()
    if "user_id" not in st.session_state:
        st.session_state.user_id = config.DEFAULT_USER_ID


def _ensure_agent() -> Any:
    if st.session_state.agent is None:
        log.info("Initialising agent for Streamlit UI...")
        st.session_state.agent = create_agent()
    return st.session_state.agent


def _render_part(part: Dict[str, Any]) -> None:
    kind = part.get("type", "")
    if kind == "text":
        st.markdown(part.get("text", ""))
    elif kind == "reasoning":
        with st.expander("Reasoning", expanded=False):
            st.markdown(part.get("text", ""))
    elif kind.startswith("tool-"):
        name = kind[len("tool-"):]
        output = part.get("output") or []
        with st.expander(f"🔧 {name} ({len(output)} result(s))", expanded=False):
            st.json(part.get("input", {}))
            for item in output:
                st.markdown(f"- [{item.get('title') or item.get('url')}]({item.get('url')})")
    else:
        log.debug("Unknown part type: %s", kind)


def _render_message(message: UIMessage) -> None:
    with st.chat_message(message.role, avatar=AVATARS.get(message.role)):
        for part in message.parts:
            _render_part(part)


def _describe(event: AgentEvent) -> str:
    action = event.action
    if event.kind == "result":
        return f"{len(event.results or [])} result(s)"
    if action.type == "search":
        return f"Searching: {action.query}"
    if action.type == "crawl":
        return f"Reading {len(action.urls)} page(s)"
    return f"Answering: {normalize_short(action.reasoning, 120)}"


async def _run_turn(agent: Any, history: List[UIMessage], status: Any, answer_ph: Any) -> UIMessage:
    writer = UIMessageStreamWriter()

    def on_event(event: AgentEvent) -> None:
        writer.handle_event(event)
        writer.drain()
        status.write(_describe(event))

    result = await agent.run(history, on_event=on_event)
    if result.exhausted:
        status.update(label="Step budget exhausted, answering with what was found", state="complete")
    else:
        status.update(label=f"Researched in {result.context.step} step(s)", state="complete")

    async for chunk in result.text_stream:
        writer.text_delta(chunk)
        answer_ph.markdown(writer.text)
    writer.finish()
    writer.drain()
    return writer.response_message()


def app() -> None:
    st.set_page_config(page_title="Deep Search", page_icon="🔎", layout="wide")
    _init_state()
    store: MessageStore = st.session_state.store
    user_id: str = st.session_state.user_id

    st.title("Deep Search")
    st.caption("Ask anything; the agent searches, reads the pages and answers with sources.")

    history = store.load_messages(user_id)
    for message in history:
        _render_message(message)

    prompt = st.chat_input("Ask me anything…")
    if not prompt:
        return

    user_message = UIMessage(id=new_message_id(), role="user", parts=[{"type": "text", "text": prompt}])
    store.save_message(user_message, user_id)
    _render_message(user_message)

    with st.chat_message("assistant", avatar=AVATARS["assistant"]):
        status = st.status("Researching…", expanded=False)
        answer_ph = st.empty()
        try:
            agent = _ensure_agent()
            reply = asyncio.run(_run_turn(agent, [*history, user_message], status, answer_ph))
        except Exception as exc:
            log.exception("Error during conversation: %s", exc)
            status.update(label="Failed", state="error")
            st.error(f"The request failed: {exc}")
            return
    store.save_message(reply, user_id)


def main() -> None:
    """Console entrypoint that boots a Streamlit server for this app."""
    from streamlit.web.bootstrap import run as st_run

    st_run(__file__, False, [], {})


if __name__ == "__main__":
    app()
