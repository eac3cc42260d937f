"""Course retriever — intro chunks unioned with top similarity matches.

For every question the retriever:
  1. checks the course has any chunks at all (``no_embeddings`` otherwise),
  2. concurrently embeds the question + runs the similarity search and
     fetches the first chunks of every file ("intro" chunks, which carry
     overview / table-of-contents material),
  3. merges intro first, then similarity results, deduplicated by
     ``(file_name, chunk_index)``,
  4. renders the merged chunks as one context string with source headers.

Degraded outcomes are reported through :class:`RetrievalStatus`, never raised.
"""

from __future__ import annotations

import asyncio
import logging

from config.settings import Settings, get_settings
from course_rag.embeddings import Embedder, get_embedder
from course_rag.store import CourseStore, get_course_store
from models.chunk import RetrievalResult, RetrievalStatus, RetrievedChunk

logger = logging.getLogger(__name__)

CHUNK_SEPARATOR = "\n\n---\n\n"


def render_chunk(chunk: RetrievedChunk) -> str:
    return f"[Source: {chunk.file_name}, section {chunk.chunk_index + 1}]\n{chunk.content}"


def merge_chunks(
    intro: list[RetrievedChunk],
    similar: list[RetrievedChunk],
) -> list[RetrievedChunk]:
    """Intro chunks first, then similarity matches, first occurrence per key wins.

    When an intro chunk collides with a similarity match, the intro entry is
    kept but inherits the match's similarity score.
    """
    scores = {c.key: c.similarity for c in similar if c.similarity is not None}
    seen: set[str] = set()
    merged: list[RetrievedChunk] = []
    for chunk in [*intro, *similar]:
        if chunk.key in seen:
            continue
        seen.add(chunk.key)
        if chunk.similarity is None and chunk.key in scores:
            chunk = chunk.model_copy(update={"similarity": scores[chunk.key]})
        merged.append(chunk)
    return merged


def build_result(merged: list[RetrievedChunk]) -> RetrievalResult:
    """Render merged chunks into an ``ok`` result (or ``no_match`` when empty)."""
    if not merged:
        return RetrievalResult(status=RetrievalStatus.NO_MATCH)
    file_names = list(dict.fromkeys(c.file_name for c in merged))
    return RetrievalResult(
        text=CHUNK_SEPARATOR.join(render_chunk(c) for c in merged),
        file_count=len(file_names),
        file_names=file_names,
        chunk_count=len(merged),
        status=RetrievalStatus.OK,
        chunks=merged,
    )


class CourseRetriever:
    """Produces a bounded, deduplicated, ordered context for one question."""

    def __init__(
        self,
        store: CourseStore | None = None,
        embedder: Embedder | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._store = store or get_course_store()
        self._embedder = embedder or get_embedder()
        self._settings = settings or get_settings()

    async def _similarity_search(self, question: str, course_id: str) -> list[RetrievedChunk]:
        vector = await self._embedder.embed_text(question)
        return await self._store.match_documents(
            vector, course_id, self._settings.rag_match_count,
        )

    async def retrieve(self, question: str, course_id: str) -> RetrievalResult:
        try:
            count = await self._store.count_chunks(course_id)
        except Exception as exc:
            logger.warning("Chunk count failed for course %s: %s", course_id, exc)
            return RetrievalResult(status=RetrievalStatus.ERROR)

        if not count:
            logger.info("No chunks found for course %s", course_id)
            return RetrievalResult(status=RetrievalStatus.NO_EMBEDDINGS)

        logger.info("%d chunks available for course %s — running similarity search",
                    count, course_id)

        similar, intro = await asyncio.gather(
            self._similarity_search(question, course_id),
            self._store.get_intro_chunks(course_id, self._settings.intro_chunk_max_index),
            return_exceptions=True,
        )

        if isinstance(similar, BaseException):
            logger.warning("Similarity search failed for course %s: %s", course_id, similar)
            return RetrievalResult(status=RetrievalStatus.ERROR)
        if isinstance(intro, BaseException):
            logger.warning("Intro chunk fetch failed for course %s: %s", course_id, intro)
            intro = []

        result = build_result(merge_chunks(intro, similar))
        if result.status == RetrievalStatus.NO_MATCH:
            logger.info("Similarity search returned 0 chunks for course %s", course_id)
            return result

        top = similar[0].similarity if similar and similar[0].similarity is not None else None
        logger.info(
            "Retrieved %d chunks (%d intro + %d similarity, top sim: %s) from %d file(s)",
            result.chunk_count, len(intro), len(similar),
            f"{top:.3f}" if top is not None else "n/a", result.file_count,
        )
        return result


_retriever: CourseRetriever | None = None


def get_course_retriever() -> CourseRetriever:
    """Return the module-level retriever singleton."""
    global _retriever
    if _retriever is None:
        _retriever = CourseRetriever()
    return _retriever
