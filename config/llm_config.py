"""Reusable completion parameters.

LLMConfig is a standalone Pydantic model that can be:
- built from Settings as the global default,
- overridden per request (e.g. the ``model`` a chat client asks for).

Priority chain (low → high):
    .env global defaults  →  per-request overrides
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """Completion parameters sent to the AI gateway.

    All fields are optional.  ``None`` means "use the model's default".
    """

    model: str | None = Field(default=None, description="Gateway model identifier")
    max_tokens: int | None = Field(default=None, description="Max tokens to generate")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    response_format: str | None = Field(
        default=None, description="'json_object' for structured output"
    )
    stop: list[str] | None = Field(default=None, description="Stop sequences")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def merge(self, overrides: LLMConfig) -> LLMConfig:
        """Return a new LLMConfig: *self* as base, *overrides* wins on non-None fields."""
        base = self.model_dump(exclude_none=True)
        over = overrides.model_dump(exclude_none=True)
        base.update(over)
        return LLMConfig(**base)

    def to_litellm_kwargs(self) -> dict:
        """Convert to ``litellm.acompletion()``-compatible keyword arguments."""
        kw: dict = {}
        for field in ("max_tokens", "temperature", "top_p", "stop"):
            val = getattr(self, field)
            if val is not None:
                kw[field] = val
        if self.response_format:
            kw["response_format"] = {"type": self.response_format}
        return kw

    def to_request_body(self) -> dict:
        """Build the JSON body fields for a raw ``/chat/completions`` call."""
        body = self.to_litellm_kwargs()
        if self.model:
            body["model"] = self.model
        return body
