"""UI message stream encoding.

The chat front end consumes a stream of typed events sent as
Server-Sent Events: one ``data: {json}`` frame per event, closed by
``data: [DONE]``.  :class:`UIMessageStreamWriter` turns agent progress
(decisions, tool calls and their results, answer chunks) into those
events and at the same time assembles the ``parts`` of the assistant
message so that it can be stored once the stream completes.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence

from .agent_loop import AgentEvent
from .logger import get_logger
from .schemas import CrawlAction, SearchAction, UIMessage
from .utils import new_message_id


log = get_logger(__name__)

STREAM_HEADERS: Dict[str, str] = {
    "x-vercel-ai-ui-message-stream": "v1",
    "cache-control": "no-cache",
    "x-accel-buffering": "no",
}

_DONE = object()


def encode_event(event: Dict[str, Any]) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


def encode_done() -> str:
    return "data: [DONE]\n\n"


def _tool_name(action: Any) -> Optional[str]:
    if isinstance(action, SearchAction):
        return "searchWeb"
    if isinstance(action, CrawlAction):
        return "crawlPages"
    return None


def _tool_input(action: Any) -> Dict[str, Any]:
    if isinstance(action, SearchAction):
        return {"query": action.query}
    if isinstance(action, CrawlAction):
        return {"urls": list(action.urls)}
    return {}


class UIMessageStreamWriter:
    """Collect stream events and the matching assistant message parts."""

    def __init__(self, message_id: Optional[str] = None) -> None:
        self.message_id = message_id or new_message_id()
        self.parts: List[Dict[str, Any]] = []
        self._frames: List[str] = []
        self._tool_calls: Dict[int, Dict[str, Any]] = {}
        self._counter = 0
        self._text_id: Optional[str] = None
        self._text: List[str] = []

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def write(self, event: Dict[str, Any]) -> None:
        self._frames.append(encode_event(event))

    def drain(self) -> List[str]:
        frames, self._frames = self._frames, []
        return frames

    def start(self) -> None:
        self.write({"type": "start", "messageId": self.message_id})

    def handle_event(self, event: AgentEvent) -> None:
        """Translate one agent loop event into stream events and parts."""
        if event.kind == "action":
            self.write({"type": "start-step"})
            if event.action.reasoning:
                reasoning_id = self._next_id("reasoning")
                self.write({"type": "reasoning-start", "id": reasoning_id})
                self.write({"type": "reasoning-delta", "id": reasoning_id, "delta": event.action.reasoning})
                self.write({"type": "reasoning-end", "id": reasoning_id})
                self.parts.append({"type": "reasoning", "text": event.action.reasoning, "state": "done"})
            name = _tool_name(event.action)
            if name is None:
                self.write({"type": "finish-step"})
                return
            call_id = self._next_id("call")
            tool_input = _tool_input(event.action)
            self.write(
                {"type": "tool-input-available", "toolCallId": call_id, "toolName": name, "input": tool_input}
            )
            part = {
                "type": f"tool-{name}",
                "toolCallId": call_id,
                "state": "input-available",
                "input": tool_input,
            }
            self.parts.append(part)
            self._tool_calls[id(event.action)] = part
        elif event.kind == "result":
            part = self._tool_calls.pop(id(event.action), None)
            if part is None:
                log.debug("Result for an unknown tool call ignored")
                return
            output = [r.model_dump() for r in event.results or []]
            self.write({"type": "tool-output-available", "toolCallId": part["toolCallId"], "output": output})
            part["state"] = "output-available"
            part["output"] = output
            self.write({"type": "finish-step"})

    def text_delta(self, delta: str) -> None:
        if self._text_id is None:
            self._text_id = self._next_id("text")
            self.write({"type": "start-step"})
            self.write({"type": "text-start", "id": self._text_id})
        self._text.append(delta)
        self.write({"type": "text-delta", "id": self._text_id, "delta": delta})

    def finish(self) -> None:
        if self._text_id is not None:
            self.write({"type": "text-end", "id": self._text_id})
            self.write({"type": "finish-step"})
            self.parts.append({"type": "text", "text": "".join(self._text), "state": "done"})
        self.write({"type": "finish"})

    @property
    def text(self) -> str:
        return "".join(self._text)

    def response_message(self) -> UIMessage:
        return UIMessage(id=self.message_id, role="assistant", parts=list(self.parts))


async def ui_message_stream(
    agent: Any,
    messages: Sequence[UIMessage],
    *,
    message_id: Optional[str] = None,
    on_finish: Optional[Callable[[UIMessage], None]] = None,
) -> AsyncIterator[str]:
    """Run ``agent`` and yield SSE frames as progress is made.

    The agent runs in its own task and hands events over through a
    queue, so decisions and tool results reach the client while the
    loop is still working.  Errors from the agent propagate out of the
    generator; ``on_finish`` is only called after a complete answer.
    """
    queue: asyncio.Queue = asyncio.Queue()
    writer = UIMessageStreamWriter(message_id)

    def _forward(event: AgentEvent) -> None:
        writer.handle_event(event)
        for frame in writer.drain():
            queue.put_nowait(frame)

    async def _run() -> Any:
        try:
            return await agent.run(messages, on_event=_forward)
        finally:
            queue.put_nowait(_DONE)

    writer.start()
    for frame in writer.drain():
        yield frame
    task = asyncio.ensure_future(_run())
    try:
        while True:
            frame = await queue.get()
            if frame is _DONE:
                break
            yield frame
    finally:
        if not task.done():
            log.info("Client went away; cancelling the agent run")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    result = task.result()
    async for chunk in result.text_stream:
        writer.text_delta(chunk)
        for frame in writer.drain():
            yield frame
    writer.finish()
    for frame in writer.drain():
        yield frame
    yield encode_done()

    if on_finish is not None:
        on_finish(writer.response_message())
