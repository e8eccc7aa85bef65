"""Utility functions for the deep search agent.

Small helpers shared by the loop, the HTTP layer and the front ends:
date framing for prompts, whitespace normalisation for previews and
new message identifiers.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional


def normalize_short(s: str, max_chars: int = 300) -> str:
    """Return a space-normalised string truncated to ``max_chars``.

    Used for log lines and UI previews where a page of crawled text or
    a long query should collapse to one readable line.
    """
    if not isinstance(s, str):
        s = str(s)
    collapsed = " ".join(s.split())
    if len(collapsed) <= max_chars:
        return collapsed
    return collapsed[: max(0, max_chars - 3)] + "..."


def current_datetime_label(now: Optional[datetime] = None) -> str:
    """Human readable local date and time for freshness framing in prompts."""
    now = now or datetime.now().astimezone()
    return now.strftime("%A, %d %B %Y, %H:%M %Z").strip().rstrip(",")


def new_message_id(prefix: str = "msg") -> str:
    return f"{prefix}_{uuid.uuid4().hex}"
