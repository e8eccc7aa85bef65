"""Action selection: ask the model for the single next step."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Tuple, Type

import aiohttp
import requests
from langchain_core.exceptions import OutputParserException
from pydantic import ValidationError

from .context import ResearchContext
from .exceptions import ActionDecodeError
from .logger import get_logger
from .prompts import ACTION_PROMPT
from .schemas import Action, ActionDecision, decode_action
from .utils import current_datetime_label


log = get_logger(__name__)

# Transport-level failures worth another attempt; decode errors never are.
RETRYABLE_MODEL_ERRORS: Tuple[Type[BaseException], ...] = (
    aiohttp.ClientConnectionError,
    aiohttp.ServerTimeoutError,
    requests.ConnectionError,
    requests.Timeout,
    ConnectionError,
    TimeoutError,
)


def build_action_chain(llm: Any, *, retry_attempts: int = 3) -> Any:
    """Compose prompt → structured model, retrying transient model failures."""
    structured = llm.with_structured_output(ActionDecision)
    if retry_attempts > 1:
        structured = structured.with_retry(
            retry_if_exception_type=RETRYABLE_MODEL_ERRORS,
            stop_after_attempt=retry_attempts,
        )
    return ACTION_PROMPT | structured


def action_inputs(context: ResearchContext, now: Optional[datetime] = None) -> dict[str, str]:
    return {
        "current_date": current_datetime_label(now),
        "message_history": context.render_message_history(),
        "search_history": context.render_search_history() or "(none yet)",
        "crawl_history": context.render_crawl_history() or "(none yet)",
    }


async def get_next_action(
    context: ResearchContext,
    chain: Any,
    *,
    now: Optional[datetime] = None,
) -> Action:
    """Return the validated next action for the current evidence.

    Raises
    ------
    ActionDecodeError
        If the model's response cannot be parsed into a valid action.
    """
    try:
        raw = await chain.ainvoke(action_inputs(context, now))
    except (OutputParserException, ValidationError) as exc:
        raise ActionDecodeError(f"Model returned an unparsable action: {exc}") from exc
    if raw is None:
        raise ActionDecodeError("Model returned no action")
    action = decode_action(raw)
    log.info("Step %s: chose %s (%s)", context.step + 1, action.type, action.reasoning[:160])
    return action
