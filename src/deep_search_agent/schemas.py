"""Data types shared across the agent.

Conversation messages mirror the chat UI's message shape (an ``id``, a
``role`` and an ordered list of typed ``parts``).  Search and crawl
results are normalised provider records.  Actions are a small tagged
union that can only be produced by :func:`decode_action`, which turns
the model's raw structured output into a validated variant.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ActionDecodeError


Role = Literal["user", "assistant", "system"]


class UIMessage(BaseModel):
    """A chat message made of typed content parts.

    Parts are kept as plain dicts (``{"type": "text", "text": ...}``,
    ``{"type": "reasoning", ...}``, ``{"type": "tool-searchWeb", ...}``)
    so that whatever the client sends is stored and replayed verbatim.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    role: Role
    parts: List[dict[str, Any]] = Field(default_factory=list)

    def text(self) -> str:
        """Concatenate the text parts; other part types contribute nothing."""
        return "".join(
            str(part.get("text", "")) for part in self.parts if part.get("type") == "text"
        )


class ChatRequest(BaseModel):
    messages: List[UIMessage]


class SearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    title: Optional[str] = None
    score: Optional[float] = None
    published_date: Optional[str] = None
    author: Optional[str] = None


class CrawlResult(SearchResult):
    text: str = ""


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class ActionDecision(BaseModel):
    """Raw structured output requested from the model.

    This is the wire schema only; it is deliberately loose (nullable
    ``query`` and ``urls``) because that is what the model is asked to
    fill in.  Use :func:`decode_action` to obtain a validated action.
    """

    reasoning: str = Field(description="Why this action is the best next step.")
    type: Literal["search", "crawl", "answer"] = Field(
        description="search: look for new URLs; crawl: read pages in full; answer: reply to the user."
    )
    query: Optional[str] = Field(
        default=None, description="Search query. Required for 'search', otherwise null."
    )
    urls: Optional[List[str]] = Field(
        default=None, description="URLs to crawl in one batch. Required for 'crawl', otherwise null."
    )


class SearchAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["search"] = "search"
    reasoning: str
    query: str


class CrawlAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["crawl"] = "crawl"
    reasoning: str
    urls: tuple[str, ...]


class AnswerAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["answer"] = "answer"
    reasoning: str


Action = Union[SearchAction, CrawlAction, AnswerAction]


def decode_action(raw: Any) -> Action:
    """Validate a raw model payload and build the matching action.

    ``raw`` may be an :class:`ActionDecision`, a mapping or a JSON
    string.  A ``search`` needs a non-empty ``query`` and a ``crawl`` a
    non-empty ``urls`` list; an ``answer`` carries only its reasoning.

    Raises
    ------
    ActionDecodeError
        If the payload does not fit the schema or its tag's shape.
    """
    try:
        if isinstance(raw, ActionDecision):
            decision = raw
        elif isinstance(raw, (str, bytes)):
            decision = ActionDecision.model_validate_json(raw)
        elif isinstance(raw, BaseModel):
            decision = ActionDecision.model_validate(raw.model_dump())
        else:
            decision = ActionDecision.model_validate(raw)
    except ValidationError as exc:
        raise ActionDecodeError(f"Action payload does not match the schema: {exc}", raw) from exc

    query = (decision.query or "").strip()
    urls = [u.strip() for u in (decision.urls or []) if u and u.strip()]

    # Fields that do not belong to the chosen tag are dropped, not rejected.
    if decision.type == "search":
        if not query:
            raise ActionDecodeError("A 'search' action requires a non-empty query", raw)
        return SearchAction(reasoning=decision.reasoning, query=query)

    if decision.type == "crawl":
        if not urls:
            raise ActionDecodeError("A 'crawl' action requires a non-empty list of urls", raw)
        return CrawlAction(reasoning=decision.reasoning, urls=tuple(urls))

    return AnswerAction(reasoning=decision.reasoning)
