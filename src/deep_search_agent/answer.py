"""Final answer generation, streamed chunk by chunk."""

from __future__ import annotations

from datetime import datetime
from typing import Any, AsyncIterator, Optional

from langchain_core.output_parsers import StrOutputParser

from .context import ResearchContext
from .logger import get_logger
from .prompts import ANSWER_PROMPT, PROMPTS
from .utils import current_datetime_label


log = get_logger(__name__)


def build_answer_chain(llm: Any) -> Any:
    return ANSWER_PROMPT | llm | StrOutputParser()


async def stream_answer(
    context: ResearchContext,
    chain: Any,
    *,
    exhausted: bool = False,
    now: Optional[datetime] = None,
) -> AsyncIterator[str]:
    """Yield the answer text as the model produces it.

    With ``exhausted`` set the model is told the research budget ran out
    and asked for a best-effort reply that flags what is uncertain.
    """
    log.info(
        "Generating answer from %s search result(s) and %s crawled page(s)%s",
        len(context.search_results),
        len(context.crawl_results),
        " (step budget exhausted)" if exhausted else "",
    )
    inputs = {
        "current_date": current_datetime_label(now),
        "exhausted_note": PROMPTS["answer-exhausted"] if exhausted else "",
        "message_history": context.render_message_history(),
        "search_history": context.render_search_history() or "(none)",
        "crawl_history": context.render_crawl_history() or "(none)",
    }
    async for chunk in chain.astream(inputs):
        if chunk:
            yield chunk
