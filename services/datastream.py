"""Chat stream encoder — server-sent events for the chat endpoint.

Each method returns one ready-to-yield SSE line: ``"data: {json}\\n\\n"``

- content increment: ``data: {"content": "..."}``
- error:             ``data: {"error": "..."}``
- termination:       ``data: [DONE]``

Every stream ends with the termination line, whether it delivered content
or an error, so clients can tell a finished stream from a dropped one.
"""

from __future__ import annotations

import json
from typing import Any

from models.chat import StreamEvent, StreamEventType

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

DONE_LINE = "data: [DONE]\n\n"


class ChatStreamEncoder:
    """Encode :class:`StreamEvent` values as SSE lines."""

    @staticmethod
    def _sse(payload: dict[str, Any]) -> str:
        return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"

    def content(self, text: str) -> str:
        return self._sse({"content": text})

    def error(self, text: str) -> str:
        return self._sse({"error": text})

    def done(self) -> str:
        return DONE_LINE

    def encode(self, event: StreamEvent) -> str:
        if event.type == StreamEventType.CONTENT:
            return self.content(event.text)
        if event.type == StreamEventType.ERROR:
            return self.error(event.text)
        return self.done()
