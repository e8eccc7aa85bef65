from __future__ import annotations

import pytest

from deep_search_agent.exceptions import ActionDecodeError
from deep_search_agent.schemas import (
    ActionDecision,
    AnswerAction,
    CrawlAction,
    SearchAction,
    UIMessage,
    decode_action,
)


def test_decode_search():
    action = decode_action({"reasoning": "r", "type": "search", "query": " ebikes london ", "urls": None})
    assert isinstance(action, SearchAction)
    assert action.query == "ebikes london"


def test_decode_crawl_keeps_all_urls_in_order():
    action = decode_action(
        ActionDecision(reasoning="r", type="crawl", query=None, urls=["https://a.example", "https://b.example"])
    )
    assert isinstance(action, CrawlAction)
    assert action.urls == ("https://a.example", "https://b.example")


def test_decode_answer_from_json():
    action = decode_action('{"reasoning": "done", "type": "answer", "query": null, "urls": null}')
    assert isinstance(action, AnswerAction)
    assert action.reasoning == "done"


@pytest.mark.parametrize("query", [None, "", "   "])
def test_search_without_query_is_rejected(query):
    with pytest.raises(ActionDecodeError):
        decode_action({"reasoning": "r", "type": "search", "query": query, "urls": None})


@pytest.mark.parametrize("urls", [None, [], ["", "  "]])
def test_crawl_without_urls_is_rejected(urls):
    with pytest.raises(ActionDecodeError):
        decode_action({"reasoning": "r", "type": "crawl", "query": None, "urls": urls})


def test_unknown_type_is_rejected():
    with pytest.raises(ActionDecodeError) as info:
        decode_action({"reasoning": "r", "type": "browse", "query": "x", "urls": None})
    assert info.value.payload["type"] == "browse"


def test_missing_reasoning_is_rejected():
    with pytest.raises(ActionDecodeError):
        decode_action({"type": "answer"})


def test_fields_of_other_tags_are_dropped():
    action = decode_action({"reasoning": "r", "type": "answer", "query": "leftover", "urls": ["https://x"]})
    assert action == AnswerAction(reasoning="r")


def test_ui_message_text_concatenates_text_parts():
    message = UIMessage(
        id="1",
        role="user",
        parts=[{"type": "text", "text": "a"}, {"type": "file", "url": "x"}, {"type": "text", "text": "b"}],
    )
    assert message.text() == "ab"


def test_ui_message_rejects_unknown_role():
    with pytest.raises(ValueError):
        UIMessage(id="1", role="tool", parts=[])
