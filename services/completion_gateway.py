"""Streaming completion gateway — relays model output as stream events.

Two transports implement :class:`CompletionTransport`:

- :class:`LiteLLMTransport` — ``litellm.acompletion(stream=True)`` against
  the OpenAI-compatible AI gateway (primary).
- :class:`HttpStreamTransport` — raw ``POST /chat/completions`` over httpx,
  decoding ``data: <json>`` lines until ``[DONE]`` (fallback, longer timeout).

:class:`CompletionGateway` tries the primary transport and switches to the
fallback only for network-class failures raised before any content was
delivered.  After such a failure the primary is skipped for a cooldown
period.  Every stream it produces ends with exactly one ``done`` event.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

import httpx
import litellm

from config.llm_config import LLMConfig
from config.settings import Settings, get_settings
from errors.exceptions import ConfigurationError, NetworkError, UpstreamError
from models.chat import StreamEvent
from models.errors import (
    NO_RESPONSE_MESSAGE,
    ErrorCode,
    format_error,
    is_network_error,
    to_user_message,
)
from services.concurrency import rate_limited_llm_call

logger = logging.getLogger(__name__)

GATEWAY_SERVICE = "AI Gateway"


def parse_sse_line(line: str) -> str | None:
    """Return the content delta carried by one ``data:`` line, if any.

    Non-data lines, the ``[DONE]`` sentinel and undecodable JSON yield None.
    """
    line = line.strip()
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if not payload or payload == "[DONE]":
        return None
    try:
        data = json.loads(payload)
    except ValueError:
        return None
    try:
        return data["choices"][0]["delta"].get("content") or None
    except (KeyError, IndexError, TypeError, AttributeError):
        return None


# ── Transports ───────────────────────────────────────────────


class CompletionTransport(ABC):
    """One way of obtaining a streamed chat completion."""

    name: str = "transport"

    @abstractmethod
    def stream(self, messages: list[dict], config: LLMConfig) -> AsyncIterator[str]:
        """Yield content increments as soon as they are decoded."""
        ...


class LiteLLMTransport(CompletionTransport):
    """Primary transport: LiteLLM's OpenAI-compatible streaming client."""

    name = "litellm"

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    async def stream(self, messages: list[dict], config: LLMConfig) -> AsyncIterator[str]:
        s = self._settings
        if not s.portkey_api_key:
            raise ConfigurationError("PORTKEY_API_KEY")

        try:
            response = await rate_limited_llm_call(
                litellm.acompletion,
                model=config.model,
                messages=messages,
                stream=True,
                api_base=s.portkey_base_url,
                api_key=s.portkey_api_key,
                custom_llm_provider="openai",
                timeout=s.stream_timeout,
                **config.to_litellm_kwargs(),
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except (litellm.APIConnectionError, litellm.Timeout) as exc:
            raise NetworkError(GATEWAY_SERVICE, str(exc)) from exc


class HttpStreamTransport(CompletionTransport):
    """Fallback transport: raw HTTP streaming with manual SSE decoding."""

    name = "http"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport

    async def stream(self, messages: list[dict], config: LLMConfig) -> AsyncIterator[str]:
        s = self._settings
        if not s.portkey_api_key:
            raise ConfigurationError("PORTKEY_API_KEY")

        url = f"{s.portkey_base_url.rstrip('/')}/chat/completions"
        body = {**config.to_request_body(), "messages": messages, "stream": True}
        headers = {"Authorization": f"Bearer {s.portkey_api_key}"}

        try:
            async with httpx.AsyncClient(
                timeout=s.stream_timeout, transport=self._transport
            ) as client:
                async with client.stream("POST", url, headers=headers, json=body) as resp:
                    if resp.is_error:
                        text = (await resp.aread()).decode("utf-8", errors="replace")
                        raise UpstreamError(GATEWAY_SERVICE, resp.status_code, text[:200])
                    async for line in resp.aiter_lines():
                        content = parse_sse_line(line)
                        if content:
                            yield content
        except httpx.TransportError as exc:
            raise NetworkError(GATEWAY_SERVICE, str(exc) or exc.__class__.__name__) from exc


# ── Gateway ──────────────────────────────────────────────────


class CompletionGateway:
    """Stream a completion through the primary transport, with network fallback."""

    def __init__(
        self,
        primary: CompletionTransport,
        fallback: CompletionTransport | None = None,
        *,
        network_hint: str = "",
        primary_cooldown: float = 60.0,
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self._network_hint = network_hint
        self._primary_cooldown = primary_cooldown
        self._primary_down_until = 0.0

    @property
    def primary_available(self) -> bool:
        return time.monotonic() >= self._primary_down_until

    def _mark_primary_down(self) -> None:
        self._primary_down_until = time.monotonic() + self._primary_cooldown

    async def _stream_text(self, messages: list[dict], config: LLMConfig) -> AsyncIterator[str]:
        if self._fallback is not None and not self.primary_available:
            logger.info("Primary transport cooling down — using %s", self._fallback.name)
            async for text in self._fallback.stream(messages, config):
                yield text
            return

        delivered = False
        try:
            async for text in self._primary.stream(messages, config):
                delivered = True
                yield text
            return
        except Exception as exc:
            if delivered or self._fallback is None or not is_network_error(exc):
                raise
            logger.warning(
                "%s transport network error (%s) — falling back to %s",
                self._primary.name, exc, self._fallback.name,
            )
            self._mark_primary_down()

        async for text in self._fallback.stream(messages, config):
            yield text

    async def stream_completion(
        self, messages: list[dict], config: LLMConfig,
    ) -> AsyncIterator[StreamEvent]:
        """Yield content events, at most one error event, then one done event."""
        total_chars = 0
        try:
            async for text in self._stream_text(messages, config):
                total_chars += len(text)
                yield StreamEvent.content(text)
        except Exception as exc:
            code = (ErrorCode.GATEWAY_UNREACHABLE if is_network_error(exc)
                    else ErrorCode.LLM_PROVIDER_ERROR)
            logger.error("Completion stream failed (model=%s): %s",
                         config.model, format_error(code, str(exc)))
            yield StreamEvent.error(to_user_message(exc, self._network_hint))
            yield StreamEvent.done()
            return

        logger.info("Stream completed: %d chars (model=%s)", total_chars, config.model)
        if total_chars == 0:
            logger.warning("Stream returned no content: %s",
                           format_error(ErrorCode.EMPTY_RESPONSE, f"model={config.model}"))
            yield StreamEvent.error(NO_RESPONSE_MESSAGE)
        yield StreamEvent.done()


_gateway: CompletionGateway | None = None


def get_completion_gateway() -> CompletionGateway:
    """Return the module-level gateway singleton (LiteLLM → raw HTTP)."""
    global _gateway
    if _gateway is None:
        settings = get_settings()
        _gateway = CompletionGateway(
            LiteLLMTransport(settings),
            HttpStreamTransport(settings),
            network_hint=settings.gateway_network_hint,
        )
    return _gateway
