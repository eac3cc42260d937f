"""Embeddings client for the OpenAI-compatible AI gateway.

Vectors are requested at a fixed dimensionality (``embedding_dim``) so they
fit the ``vector(1536)`` column of the chunk store, whatever the model's
native size.
"""

from __future__ import annotations

import logging

import httpx

from config.settings import Settings, get_settings
from errors.exceptions import ConfigurationError, NetworkError, UpstreamError

logger = logging.getLogger(__name__)


class Embedder:
    """Batched ``/embeddings`` client.

    The API key is read lazily on every call, so a process can start (and
    serve non-embedding routes) without one.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts*, returning one vector per input in the same order.

        Raises:
            ConfigurationError: the gateway API key is not configured.
            UpstreamError: any batch came back with a non-2xx status.  No
                partial result is returned.
            NetworkError: the gateway could not be reached.
        """
        s = self._settings
        if not s.portkey_api_key:
            raise ConfigurationError("PORTKEY_API_KEY")
        if not texts:
            return []

        url = f"{s.portkey_base_url.rstrip('/')}/embeddings"
        headers = {"Authorization": f"Bearer {s.portkey_api_key}"}
        vectors: list[list[float]] = []

        async with httpx.AsyncClient(
            timeout=s.embedding_timeout, transport=self._transport
        ) as client:
            for i in range(0, len(texts), s.embedding_batch_size):
                batch = texts[i : i + s.embedding_batch_size]
                try:
                    resp = await client.post(
                        url,
                        headers=headers,
                        json={
                            "model": s.embedding_model,
                            "input": batch,
                            "dimensions": s.embedding_dim,
                        },
                    )
                except httpx.TransportError as exc:
                    raise NetworkError("Embeddings", str(exc) or exc.__class__.__name__) from exc

                if resp.is_error:
                    logger.error(
                        "Embeddings API error %d: %s",
                        resp.status_code, resp.text[:200],
                    )
                    raise UpstreamError("Embeddings", resp.status_code, resp.text)

                data = resp.json()["data"]
                vectors.extend(item["embedding"] for item in data)

        logger.debug("Embedded %d texts in %d batch(es)",
                     len(texts), -(-len(texts) // s.embedding_batch_size))
        return vectors

    async def embed_text(self, text: str) -> list[float]:
        """Embed a single string."""
        [vector] = await self.embed_texts([text])
        return vector


_embedder: Embedder | None = None


def get_embedder() -> Embedder:
    """Return the module-level embedder singleton."""
    global _embedder
    if _embedder is None:
        _embedder = Embedder()
    return _embedder
