"""HTTP surface for the chat front end.

``POST /api/chat`` takes ``{"messages": [...]}``, stores the latest
user message, runs the agent and streams the UI message stream back.
The assistant message is stored once the stream has completed.
``GET /api/messages`` returns the stored conversation for the caller.

The caller is identified per request by the ``X-User-Id`` header,
falling back to ``DEEP_SEARCH_USER_ID``.
"""

from __future__ import annotations

import time
from typing import Any, AsyncIterator, Callable, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import StreamingResponse

from . import config
from .db import MessageStore
from .logger import get_logger
from .schemas import ChatRequest, UIMessage
from .stream import STREAM_HEADERS, ui_message_stream


log = get_logger(__name__)


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    return (x_user_id or "").strip() or config.DEFAULT_USER_ID


def create_app(
    *,
    agent_factory: Optional[Callable[[], Any]] = None,
    store: Optional[MessageStore] = None,
    max_duration: Optional[int] = None,
) -> FastAPI:
    """Build the FastAPI app.

    The agent is created lazily on the first chat request so that the
    app can start (and serve history) without provider keys.
    """
    if agent_factory is None:
        from .agent_factory import create_agent

        agent_factory = create_agent
    duration_budget = max_duration or config.MAX_DURATION_SECONDS

    app = FastAPI(title="Deep Search Agent")
    app.state.agent = None
    app.state.store = store

    def get_store(request: Request) -> MessageStore:
        if request.app.state.store is None:
            request.app.state.store = MessageStore()
        return request.app.state.store

    def get_agent(request: Request) -> Any:
        if request.app.state.agent is None:
            log.info("Initialising agent for HTTP requests...")
            request.app.state.agent = agent_factory()
        return request.app.state.agent

    @app.post("/api/chat")
    async def chat(
        body: ChatRequest,
        user_id: str = Depends(get_user_id),
        store: MessageStore = Depends(get_store),
        agent: Any = Depends(get_agent),
    ) -> StreamingResponse:
        if not body.messages:
            raise HTTPException(status_code=400, detail="messages must not be empty")

        last = body.messages[-1]
        store.save_message(UIMessage(id=last.id, role="user", parts=last.parts), user_id)
        started = time.monotonic()

        def on_finish(message: UIMessage) -> None:
            store.save_message(message, user_id)
            elapsed = time.monotonic() - started
            if elapsed > duration_budget:
                log.warning("Chat request took %.1fs (budget %ss)", elapsed, duration_budget)
            else:
                log.info("Chat request finished in %.1fs", elapsed)

        async def frames() -> AsyncIterator[str]:
            try:
                async for frame in ui_message_stream(agent, body.messages, on_finish=on_finish):
                    yield frame
            except Exception:
                log.exception("Chat request for %s aborted", user_id)
                raise

        return StreamingResponse(frames(), media_type="text/event-stream", headers=STREAM_HEADERS)

    @app.get("/api/messages", response_model=List[UIMessage])
    def list_messages(
        user_id: str = Depends(get_user_id),
        store: MessageStore = Depends(get_store),
    ) -> List[UIMessage]:
        return store.load_messages(user_id)

    return app


def serve() -> None:
    """Console entrypoint running the API with uvicorn."""
    import uvicorn

    host = config.get_env("DEEP_SEARCH_HOST", "127.0.0.1") or "127.0.0.1"
    port = config.get_int("DEEP_SEARCH_PORT", 8000)
    uvicorn.run(create_app(), host=host, port=port)
