"""Course / chunk store — courses, users, course files, chunk vectors, analytics.

Provides an abstract interface with an in-memory implementation (numpy
cosine similarity) for tests and local development.  The PostgreSQL +
pgvector implementation lives in ``pg_store.py``.

Rows from the backing store are decoded exactly once, here, through the
typed decoders in ``models.course`` and ``models.user``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import numpy as np

from models.chunk import ChunkSource, DocumentChunk, RetrievedChunk
from models.course import Course, CourseFile, course_file_from_row, course_from_row
from models.user import UserProfile, user_from_row

logger = logging.getLogger(__name__)


# ── Abstract Interface ───────────────────────────────────────


class CourseStore(ABC):
    """Abstract course store — implement for different backends."""

    # Courses & users

    @abstractmethod
    async def get_course(self, course_id: str) -> Course | None:
        """Return the course, or None if it does not exist."""
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> UserProfile | None:
        ...

    # Course files

    @abstractmethod
    async def add_course_file(self, file: CourseFile) -> None:
        """Register (or replace) a file record."""
        ...

    @abstractmethod
    async def get_course_file(self, file_id: str) -> CourseFile | None:
        ...

    @abstractmethod
    async def list_course_files(self, course_id: str) -> list[CourseFile]:
        """Files of a course, newest upload first."""
        ...

    @abstractmethod
    async def delete_course_file(self, file_id: str) -> None:
        ...

    # Chunks

    @abstractmethod
    async def count_chunks(self, course_id: str) -> int:
        ...

    @abstractmethod
    async def match_documents(
        self, query_embedding: list[float], course_id: str, match_count: int,
    ) -> list[RetrievedChunk]:
        """Top ``match_count`` chunks of the course by cosine similarity, best first."""
        ...

    @abstractmethod
    async def get_intro_chunks(
        self, course_id: str, max_chunk_index: int,
    ) -> list[RetrievedChunk]:
        """Every chunk with ``chunk_index <= max_chunk_index``, by file name then index."""
        ...

    @abstractmethod
    async def list_course_chunks(
        self, course_id: str, file_ids: list[str] | None = None, limit: int = 60,
    ) -> list[RetrievedChunk]:
        """Chunks ordered by file name then index, optionally limited to *file_ids*."""
        ...

    @abstractmethod
    async def delete_file_chunks(self, file_id: str, course_id: str | None = None) -> int:
        """Delete a file's chunks (within *course_id* when given).  Returns count removed."""
        ...

    @abstractmethod
    async def insert_chunks(self, chunks: list[DocumentChunk]) -> None:
        """Insert all rows in one bulk write."""
        ...

    # Analytics

    @abstractmethod
    async def record_question(
        self,
        *,
        question: str,
        course_id: str,
        course_name: str,
        session_id: str,
        user_id: str | None = None,
    ) -> None:
        ...

    async def initialize(self) -> None:
        """Open backend resources (called once at startup)."""

    async def close(self) -> None:
        """Release backend resources."""


# ── In-Memory Implementation ────────────────────────────────


def _cosine(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    return np.divide(dots, norms, out=np.zeros_like(dots), where=norms != 0)


def _retrieved(
    chunk: DocumentChunk,
    source: ChunkSource,
    similarity: float | None = None,
) -> RetrievedChunk:
    return RetrievedChunk(
        file_id=chunk.file_id,
        file_name=chunk.file_name,
        chunk_index=chunk.chunk_index,
        content=chunk.content,
        similarity=similarity,
        source=source,
    )


class InMemoryCourseStore(CourseStore):
    """Dict-backed store.  Suitable for tests and single-process development.

    Courses and users are seeded as raw rows (``add_course`` / ``add_user``)
    and go through the same decoders as the PostgreSQL backend.
    """

    def __init__(self) -> None:
        self._courses: dict[str, dict[str, Any]] = {}
        self._users: dict[str, dict[str, Any]] = {}
        self._files: dict[str, CourseFile] = {}
        self._chunks: list[DocumentChunk] = []
        self.questions: list[dict[str, Any]] = []

    # Seeding

    def add_course(self, row: Mapping[str, Any]) -> None:
        self._courses[str(row["id"])] = dict(row)

    def add_user(self, row: Mapping[str, Any]) -> None:
        self._users[str(row["id"])] = dict(row)

    # Courses & users

    async def get_course(self, course_id: str) -> Course | None:
        row = self._courses.get(course_id)
        return course_from_row(row) if row is not None else None

    async def get_user(self, user_id: str) -> UserProfile | None:
        row = self._users.get(user_id)
        return user_from_row(row) if row is not None else None

    # Course files

    async def add_course_file(self, file: CourseFile) -> None:
        if file.uploaded_at is None:
            file = file.model_copy(update={"uploaded_at": datetime.now(timezone.utc)})
        self._files[file.file_id] = file

    async def get_course_file(self, file_id: str) -> CourseFile | None:
        return self._files.get(file_id)

    async def list_course_files(self, course_id: str) -> list[CourseFile]:
        files = [f for f in self._files.values() if f.course_id == course_id]
        return sorted(files, key=lambda f: f.uploaded_at, reverse=True)

    async def delete_course_file(self, file_id: str) -> None:
        self._files.pop(file_id, None)

    # Chunks

    async def count_chunks(self, course_id: str) -> int:
        return sum(1 for c in self._chunks if c.course_id == course_id)

    async def match_documents(
        self, query_embedding: list[float], course_id: str, match_count: int,
    ) -> list[RetrievedChunk]:
        candidates = [c for c in self._chunks if c.course_id == course_id and c.embedding]
        if not candidates or match_count <= 0:
            return []
        matrix = np.asarray([c.embedding for c in candidates], dtype=float)
        scores = _cosine(matrix, np.asarray(query_embedding, dtype=float))
        # Stable sort keeps insertion order among equal scores.
        order = np.argsort(-scores, kind="stable")[:match_count]
        return [
            _retrieved(candidates[i], ChunkSource.SIMILARITY, float(scores[i]))
            for i in order
        ]

    async def get_intro_chunks(
        self, course_id: str, max_chunk_index: int,
    ) -> list[RetrievedChunk]:
        intro = [
            c for c in self._chunks
            if c.course_id == course_id and c.chunk_index <= max_chunk_index
        ]
        intro.sort(key=lambda c: (c.file_name, c.chunk_index))
        return [_retrieved(c, ChunkSource.INTRO) for c in intro]

    async def list_course_chunks(
        self, course_id: str, file_ids: list[str] | None = None, limit: int = 60,
    ) -> list[RetrievedChunk]:
        rows = [
            c for c in self._chunks
            if c.course_id == course_id and (not file_ids or c.file_id in file_ids)
        ]
        rows.sort(key=lambda c: (c.file_name, c.chunk_index))
        return [_retrieved(c, ChunkSource.INTRO) for c in rows[:limit]]

    async def delete_file_chunks(self, file_id: str, course_id: str | None = None) -> int:
        before = len(self._chunks)
        self._chunks = [
            c for c in self._chunks
            if not (c.file_id == file_id and (course_id is None or c.course_id == course_id))
        ]
        return before - len(self._chunks)

    async def insert_chunks(self, chunks: list[DocumentChunk]) -> None:
        self._chunks.extend(chunks)

    # Analytics

    async def record_question(
        self,
        *,
        question: str,
        course_id: str,
        course_name: str,
        session_id: str,
        user_id: str | None = None,
    ) -> None:
        self.questions.append({
            "question": question.strip(),
            "course_id": course_id,
            "course_name": course_name,
            "session_id": session_id,
            "user_id": user_id,
            "created_at": datetime.now(timezone.utc),
        })


# ── Module-level Singleton ───────────────────────────────────

_store: CourseStore | None = None


def get_course_store() -> CourseStore:
    """Get the singleton course store instance."""
    global _store
    if _store is None:
        from config.settings import get_settings

        settings = get_settings()
        if settings.store_type == "postgres":
            from course_rag.pg_store import PostgresCourseStore

            _store = PostgresCourseStore(pg_uri=settings.pg_uri)
            logger.info("Initialized PostgresCourseStore")
        else:
            _store = InMemoryCourseStore()
            logger.info("Initialized InMemoryCourseStore")
    return _store


def set_course_store(store: CourseStore | None) -> None:
    """Replace the singleton (tests, or a store built elsewhere)."""
    global _store
    _store = store
