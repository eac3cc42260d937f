"""Concurrency controls for outbound LLM calls and heavy endpoints.

Caps the number of concurrent gateway completions per worker process with
an ``asyncio.Semaphore`` and rejects chat / quiz requests with 503 when a
worker is saturated instead of letting them queue forever.

The middleware is pure ASGI (not BaseHTTPMiddleware) to preserve SSE
streaming.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Coroutine

from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

# ── Outbound LLM semaphore ───────────────────────────────────
# 10 concurrent gateway calls per worker; with 4 workers that is up to 40
# cluster-wide.

_MAX_CONCURRENT_LLM = 10
_llm_semaphore: asyncio.Semaphore | None = None


def _get_semaphore() -> asyncio.Semaphore:
    """Lazy-init so the semaphore binds to the running event loop."""
    global _llm_semaphore
    if _llm_semaphore is None:
        _llm_semaphore = asyncio.Semaphore(_MAX_CONCURRENT_LLM)
        logger.info("LLM concurrency semaphore initialized (max=%d)", _MAX_CONCURRENT_LLM)
    return _llm_semaphore


async def rate_limited_llm_call(
    func: Callable[..., Coroutine[Any, Any, Any]],
    *args: Any,
    **kwargs: Any,
) -> Any:
    """Execute an async LLM function with concurrency limiting.

    Usage::

        result = await rate_limited_llm_call(litellm.acompletion, model=..., messages=...)
    """
    async with _get_semaphore():
        return await func(*args, **kwargs)


# ── Heavy endpoint concurrency middleware (pure ASGI) ─────────

_MAX_CONCURRENT_HEAVY = 15  # per worker
_heavy_semaphore: asyncio.Semaphore | None = None

HEAVY_PATHS = frozenset({
    "/api/chat",
    "/api/generate-quiz",
})


def _get_heavy_semaphore() -> asyncio.Semaphore:
    global _heavy_semaphore
    if _heavy_semaphore is None:
        _heavy_semaphore = asyncio.Semaphore(_MAX_CONCURRENT_HEAVY)
        logger.info("Heavy endpoint semaphore initialized (max=%d)", _MAX_CONCURRENT_HEAVY)
    return _heavy_semaphore


class ConcurrencyLimitMiddleware:
    """Reject heavy requests with 503 + Retry-After when the worker is at capacity.

    Lightweight endpoints (health, session, uploads) pass through unaffected.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") not in HEAVY_PATHS:
            await self.app(scope, receive, send)
            return

        sem = _get_heavy_semaphore()
        if sem.locked():
            logger.warning("Concurrency limit reached for %s — returning 503", scope["path"])
            body = json.dumps(
                {"error": "Server busy — too many concurrent requests. Please retry."}
            ).encode()
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"retry-after", b"5"),
                ],
            })
            await send({"type": "http.response.body", "body": body})
            return

        async with sem:
            await self.app(scope, receive, send)
