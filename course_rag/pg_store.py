"""PostgreSQL + pgvector implementation of :class:`CourseStore`.

Tables: ``courses``, ``users``, ``course_files``, ``document_chunks``
(``embedding vector(1536)``) and ``analytics_events``.  Vectors are sent as
bracketed literals (``"[0.1,0.2,...]"``) and cast with ``::vector``.
"""

from __future__ import annotations

import logging

import asyncpg

from course_rag.store import CourseStore
from models.chunk import ChunkSource, DocumentChunk, RetrievedChunk
from models.course import Course, CourseFile, course_file_from_row, course_from_row
from models.user import UserProfile, user_from_row

logger = logging.getLogger(__name__)

_CHUNK_COLUMNS = "file_id, file_name, chunk_index, content"


def to_vector_literal(values: list[float]) -> str:
    """Serialize a vector the way pgvector parses text input."""
    return "[" + ",".join(repr(float(v)) for v in values) + "]"


def _chunk_from_row(row, source: ChunkSource) -> RetrievedChunk:
    similarity = row["similarity"] if "similarity" in row.keys() else None
    return RetrievedChunk(
        file_id=str(row["file_id"]),
        file_name=row["file_name"],
        chunk_index=row["chunk_index"],
        content=row["content"],
        similarity=similarity,
        source=source,
    )


class PostgresCourseStore(CourseStore):
    """asyncpg-pool backed store.  Call :meth:`initialize` once at startup."""

    def __init__(self, pg_uri: str, *, min_size: int = 2, max_size: int = 10) -> None:
        self._pg_uri = pg_uri
        self._min_size = min_size
        self._max_size = max_size
        self._pool: asyncpg.Pool | None = None

    async def initialize(self) -> None:
        """Create the connection pool and verify connectivity."""
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._pg_uri,
                min_size=self._min_size,
                max_size=self._max_size,
                max_inactive_connection_lifetime=300,
            )
            async with self._pool.acquire() as conn:
                await conn.execute("SELECT 1")
            logger.info(
                "Course store PostgreSQL pool created (min=%d, max=%d)",
                self._min_size, self._max_size,
            )
        except (OSError, asyncpg.PostgresError) as exc:
            self._pool = None
            logger.warning(
                "Course store PostgreSQL not available: %s — "
                "store calls will fail until DB is accessible",
                exc,
            )

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("PostgreSQL pool not initialized — call initialize() first")
        return self._pool

    # Courses & users

    async def get_course(self, course_id: str) -> Course | None:
        row = await self._require_pool().fetchrow(
            "SELECT * FROM courses WHERE id = $1", course_id,
        )
        return course_from_row(dict(row)) if row else None

    async def get_user(self, user_id: str) -> UserProfile | None:
        row = await self._require_pool().fetchrow(
            "SELECT * FROM users WHERE id = $1", user_id,
        )
        return user_from_row(dict(row)) if row else None

    # Course files

    async def add_course_file(self, file: CourseFile) -> None:
        await self._require_pool().execute(
            "INSERT INTO course_files "
            "(file_id, course_id, file_name, file_url, file_size, file_type, uploaded_at) "
            "VALUES ($1, $2, $3, $4, $5, $6, COALESCE($7, now())) "
            "ON CONFLICT (file_id) DO UPDATE SET "
            "course_id = EXCLUDED.course_id, file_name = EXCLUDED.file_name, "
            "file_url = EXCLUDED.file_url, file_size = EXCLUDED.file_size, "
            "file_type = EXCLUDED.file_type",
            file.file_id, file.course_id, file.file_name, file.file_url,
            file.file_size, file.file_type, file.uploaded_at,
        )

    async def get_course_file(self, file_id: str) -> CourseFile | None:
        row = await self._require_pool().fetchrow(
            "SELECT * FROM course_files WHERE file_id = $1", file_id,
        )
        return course_file_from_row(dict(row)) if row else None

    async def list_course_files(self, course_id: str) -> list[CourseFile]:
        rows = await self._require_pool().fetch(
            "SELECT * FROM course_files WHERE course_id = $1 ORDER BY uploaded_at DESC",
            course_id,
        )
        return [course_file_from_row(dict(r)) for r in rows]

    async def delete_course_file(self, file_id: str) -> None:
        await self._require_pool().execute(
            "DELETE FROM course_files WHERE file_id = $1", file_id,
        )

    # Chunks

    async def count_chunks(self, course_id: str) -> int:
        return await self._require_pool().fetchval(
            "SELECT count(*) FROM document_chunks WHERE course_id = $1", course_id,
        )

    async def match_documents(
        self, query_embedding: list[float], course_id: str, match_count: int,
    ) -> list[RetrievedChunk]:
        rows = await self._require_pool().fetch(
            f"SELECT {_CHUNK_COLUMNS}, 1 - (embedding <=> $1::vector) AS similarity "
            "FROM document_chunks WHERE course_id = $2 "
            "ORDER BY embedding <=> $1::vector LIMIT $3",
            to_vector_literal(query_embedding), course_id, match_count,
        )
        return [_chunk_from_row(r, ChunkSource.SIMILARITY) for r in rows]

    async def get_intro_chunks(
        self, course_id: str, max_chunk_index: int,
    ) -> list[RetrievedChunk]:
        rows = await self._require_pool().fetch(
            f"SELECT {_CHUNK_COLUMNS} FROM document_chunks "
            "WHERE course_id = $1 AND chunk_index <= $2 "
            "ORDER BY file_name, chunk_index",
            course_id, max_chunk_index,
        )
        return [_chunk_from_row(r, ChunkSource.INTRO) for r in rows]

    async def list_course_chunks(
        self, course_id: str, file_ids: list[str] | None = None, limit: int = 60,
    ) -> list[RetrievedChunk]:
        if file_ids:
            rows = await self._require_pool().fetch(
                f"SELECT {_CHUNK_COLUMNS} FROM document_chunks "
                "WHERE course_id = $1 AND file_id = ANY($2::text[]) "
                "ORDER BY file_name, chunk_index LIMIT $3",
                course_id, file_ids, limit,
            )
        else:
            rows = await self._require_pool().fetch(
                f"SELECT {_CHUNK_COLUMNS} FROM document_chunks "
                "WHERE course_id = $1 ORDER BY file_name, chunk_index LIMIT $2",
                course_id, limit,
            )
        return [_chunk_from_row(r, ChunkSource.INTRO) for r in rows]

    async def delete_file_chunks(self, file_id: str, course_id: str | None = None) -> int:
        pool = self._require_pool()
        if course_id is None:
            status = await pool.execute(
                "DELETE FROM document_chunks WHERE file_id = $1", file_id,
            )
        else:
            status = await pool.execute(
                "DELETE FROM document_chunks WHERE file_id = $1 AND course_id = $2",
                file_id, course_id,
            )
        # asyncpg returns the command tag, e.g. "DELETE 12"
        return int(status.split()[-1])

    async def insert_chunks(self, chunks: list[DocumentChunk]) -> None:
        if not chunks:
            return
        async with self._require_pool().acquire() as conn:
            async with conn.transaction():
                await conn.executemany(
                    "INSERT INTO document_chunks "
                    "(course_id, file_id, file_name, chunk_index, content, token_count, embedding) "
                    "VALUES ($1, $2, $3, $4, $5, $6, $7::vector)",
                    [
                        (
                            c.course_id, c.file_id, c.file_name, c.chunk_index,
                            c.content, c.token_count, to_vector_literal(c.embedding),
                        )
                        for c in chunks
                    ],
                )

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
        await self._require_pool().execute(
            "INSERT INTO analytics_events "
            "(question, course_id, course_name, user_id, session_id) "
            "VALUES ($1, $2, $3, $4, $5)",
            question.strip(), course_id, course_name, user_id, session_id,
        )

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Course store PostgreSQL pool closed")
