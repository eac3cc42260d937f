"""Shared pytest fixtures for the course assistant tests.

Provides:
- ``settings``: Settings isolated from any local .env, with a test gateway key
- ``memory_store``: InMemoryCourseStore seeded with two courses and two users
- ``fake_embedder``: deterministic keyword-count embedder (no network)
- ``make_chunk``: factory for stored DocumentChunk rows
- an autouse reset of every module-level singleton
"""

from __future__ import annotations

import pytest

import course_rag.embeddings
import course_rag.indexer
import course_rag.retriever
import course_rag.store
import services.completion_gateway
import services.index_queue
import services.session_context
from config.settings import Settings
from course_rag.store import InMemoryCourseStore
from models.chunk import DocumentChunk

KEYWORDS = ("photosynthesis", "mitochondria", "syllabus", "enzyme")


class FakeEmbedder:
    """Embeds text as keyword counts plus a constant bias dimension."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    @staticmethod
    def vector_for(text: str) -> list[float]:
        lowered = text.lower()
        return [float(lowered.count(k)) for k in KEYWORDS] + [0.1]

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vector_for(t) for t in texts]

    async def embed_text(self, text: str) -> list[float]:
        [vector] = await self.embed_texts([text])
        return vector


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Each test starts with fresh module-level singletons."""
    monkeypatch.setattr(course_rag.store, "_store", None)
    monkeypatch.setattr(course_rag.embeddings, "_embedder", None)
    monkeypatch.setattr(course_rag.indexer, "_indexer", None)
    monkeypatch.setattr(course_rag.retriever, "_retriever", None)
    monkeypatch.setattr(services.completion_gateway, "_gateway", None)
    monkeypatch.setattr(services.index_queue, "_queue", None)
    monkeypatch.setattr(services.session_context, "_state_store", None)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        portkey_api_key="test-key",
        portkey_base_url="https://gateway.test/v1",
    )


@pytest.fixture
def memory_store() -> InMemoryCourseStore:
    """Store with a visible and a hidden course owned by p-1, plus users p-1 and s-1."""
    store = InMemoryCourseStore()
    store.add_course({
        "id": "c-bio", "name": "Biology 101", "professor_id": "p-1", "is_visible": True,
    })
    store.add_course({
        "id": "c-hidden", "name": "Draft Course", "professor_id": "p-1", "is_visible": False,
    })
    store.add_user({"id": "p-1", "name": "Ada Lovelace", "role": "professor"})
    store.add_user({"id": "p-2", "name": "Alan Turing", "role": "professor"})
    store.add_user({"id": "s-1", "name": "Sam", "role": "student", "major": "Biology"})
    return store


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def make_chunk():
    def _make(
        file_name: str,
        chunk_index: int,
        content: str,
        *,
        course_id: str = "c-bio",
        file_id: str | None = None,
        embedding: list[float] | None = None,
    ) -> DocumentChunk:
        return DocumentChunk(
            course_id=course_id,
            file_id=file_id or f"f-{file_name}",
            file_name=file_name,
            chunk_index=chunk_index,
            content=content,
            token_count=len(content) // 4,
            embedding=embedding if embedding is not None else FakeEmbedder.vector_for(content),
        )

    return _make
