"""Non-streaming completions through the AI gateway, powered by LiteLLM.

Used for structured one-shot tasks such as quiz generation.  Chat answers
are streamed by :mod:`services.completion_gateway` instead.
"""

from __future__ import annotations

import json
import logging
import re

import litellm

from config.llm_config import LLMConfig
from config.settings import Settings, get_settings
from errors.exceptions import ConfigurationError, NetworkError
from services.concurrency import rate_limited_llm_call

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> dict:
    """Parse the outermost ``{...}`` in *text* (models sometimes add prose or fences).

    Raises:
        ValueError: no JSON object could be decoded.
    """
    match = _JSON_OBJECT_RE.search(text)
    data = json.loads(match.group(0) if match else text)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data


class LLMService:
    """Thin wrapper around ``litellm.acompletion()`` for the AI gateway.

    Accepts an optional :class:`LLMConfig` that is merged on top of the
    defaults from Settings.  Individual calls can still override any
    parameter via ``**overrides``.

    Priority chain (low → high):
        .env defaults  →  service-level LLMConfig  →  per-call overrides
    """

    def __init__(self, config: LLMConfig | None = None, settings: Settings | None = None):
        self._settings = settings or get_settings()
        self._config = self._settings.get_completion_config()
        if config:
            self._config = self._config.merge(config)

    @property
    def model(self) -> str | None:
        return self._config.model

    async def complete(self, messages: list[dict], **overrides) -> str:
        """Send one conversation to the gateway and return the reply text."""
        s = self._settings
        if not s.portkey_api_key:
            raise ConfigurationError("PORTKEY_API_KEY")

        kwargs: dict = {
            "model": self._config.model,
            "messages": messages,
            "api_base": s.portkey_base_url,
            "api_key": s.portkey_api_key,
            "custom_llm_provider": "openai",
            **self._config.to_litellm_kwargs(),
        }
        kwargs.update(overrides)

        try:
            response = await rate_limited_llm_call(litellm.acompletion, **kwargs)
        except (litellm.APIConnectionError, litellm.Timeout) as exc:
            raise NetworkError("AI Gateway", str(exc)) from exc

        content = response.choices[0].message.content or ""
        if not content:
            logger.warning("LLM returned empty content (model=%s)", kwargs["model"])
        return content

    async def complete_json(self, messages: list[dict], **overrides) -> dict:
        """Like :meth:`complete`, then extract the JSON object from the reply."""
        return extract_json_object(await self.complete(messages, **overrides))
