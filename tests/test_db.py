from __future__ import annotations

import pytest

from deep_search_agent.db import MessageStore, create_db_engine, messages_table
from deep_search_agent.exceptions import PersistenceError
from deep_search_agent.schemas import UIMessage


@pytest.fixture
def store() -> MessageStore:
    return MessageStore(create_db_engine("sqlite://"))


def test_save_and_load_round_trip(store):
    question = UIMessage(id="u1", role="user", parts=[{"type": "text", "text": "hello"}])
    reply = UIMessage(
        id="a1",
        role="assistant",
        parts=[
            {"type": "tool-searchWeb", "toolCallId": "call_1", "input": {"query": "hello"}, "output": []},
            {"type": "text", "text": "Hi!"},
        ],
    )
    store.save_message(question, "usr_1")
    store.save_message(reply, "usr_1")

    loaded = store.load_messages("usr_1")
    assert [m.id for m in loaded] == ["u1", "a1"]
    assert loaded[1].parts == reply.parts
    assert loaded[0].text() == "hello"


def test_messages_are_scoped_per_user(store):
    store.save_message(UIMessage(id="x", role="user", parts=[]), "alice")
    store.save_message(UIMessage(id="y", role="user", parts=[]), "bob")
    assert [m.id for m in store.load_messages("alice")] == ["x"]
    assert store.load_messages("nobody") == []


def test_duplicate_id_is_a_persistence_error(store):
    message = UIMessage(id="dup", role="user", parts=[])
    store.save_message(message, "alice")
    with pytest.raises(PersistenceError):
        store.save_message(message, "alice")


def test_created_at_is_filled_in(store):
    store.save_message(UIMessage(id="t", role="system", parts=[]), "alice")
    with store.engine.connect() as conn:
        row = conn.execute(messages_table.select()).one()
    assert row.created_at is not None
    assert row.role == "system"
