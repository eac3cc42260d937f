"""File indexer: fetch → extract → chunk → embed → replace chunk rows.

Re-indexing a file is idempotent: its existing rows are deleted before the
new set is inserted, so stale and fresh chunks never coexist.  If the insert
fails after the delete, the file is left with zero chunks, which shows up as
``no_embeddings`` and can be re-triggered.

Concurrent indexing of the same file is not locked; the last run to finish
wins.  Callers should not re-trigger a file whose previous run is pending.
"""

from __future__ import annotations

import logging

import httpx

from config.settings import Settings, get_settings
from course_rag.chunker import chunk_text
from course_rag.embeddings import Embedder, get_embedder
from course_rag.extraction import extract_text
from course_rag.store import CourseStore, get_course_store
from models.chunk import DocumentChunk
from models.indexing import IndexRequest, IndexResult

logger = logging.getLogger(__name__)

NO_CHUNKS_ERROR = "No chunks produced (file may be empty or unsupported format)"


class DocumentIndexer:
    """Builds the chunk+vector rows for one course file at a time."""

    def __init__(
        self,
        store: CourseStore | None = None,
        embedder: Embedder | None = None,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._store = store or get_course_store()
        self._embedder = embedder or get_embedder()
        self._settings = settings or get_settings()
        self._transport = transport

    async def fetch_file(self, url: str) -> bytes:
        """Download raw bytes from blob storage with the configured timeout."""
        async with httpx.AsyncClient(
            timeout=self._settings.file_fetch_timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            resp = await client.get(url)
        if resp.is_error:
            raise RuntimeError(
                f"Failed to fetch file: {resp.status_code} {resp.reason_phrase}".rstrip()
            )
        return resp.content

    async def index_file(self, req: IndexRequest) -> IndexResult:
        """Index one file.  Never raises: every failure becomes ``success=False``."""
        s = self._settings
        logger.info("Indexing '%s' (file=%s, course=%s)", req.file_name, req.file_id, req.course_id)

        try:
            data = await self.fetch_file(req.file_url)

            extracted = extract_text(req.file_name, data)
            if not extracted.ok:
                return IndexResult.failed(extracted.error or "No text extracted from file")
            logger.info("Extracted %d chars from '%s'", len(extracted.text), req.file_name)

            chunks = chunk_text(
                extracted.text,
                chunk_chars=s.chunk_chars,
                overlap_chars=s.overlap_chars,
                chars_per_token=s.chars_per_token,
                min_chunk_chars=s.min_chunk_chars,
            )
            if not chunks:
                return IndexResult.failed(NO_CHUNKS_ERROR)

            embeddings = await self._embedder.embed_texts([c.content for c in chunks])
            if len(embeddings) != len(chunks):
                raise RuntimeError(
                    f"Embeddings API returned {len(embeddings)} vectors for {len(chunks)} chunks"
                )

            rows = [
                DocumentChunk(
                    course_id=req.course_id,
                    file_id=req.file_id,
                    file_name=req.file_name,
                    chunk_index=chunk.chunk_index,
                    content=chunk.content,
                    token_count=chunk.token_count,
                    embedding=vector,
                )
                for chunk, vector in zip(chunks, embeddings)
            ]

            removed = await self._store.delete_file_chunks(req.file_id, req.course_id)
            if removed:
                logger.info("Removed %d stale chunks for '%s'", removed, req.file_name)
            await self._store.insert_chunks(rows)

        except Exception as exc:
            logger.error("Indexing failed for '%s': %s", req.file_name, exc, exc_info=True)
            return IndexResult.failed(str(exc) or exc.__class__.__name__)

        logger.info("Stored %d chunks for '%s'", len(rows), req.file_name)
        return IndexResult.ok(len(rows))

    async def delete_file_chunks(self, file_id: str) -> int:
        """Remove every chunk of a file, e.g. when the file itself is deleted."""
        removed = await self._store.delete_file_chunks(file_id)
        logger.info("Deleted %d chunks for file %s", removed, file_id)
        return removed


_indexer: DocumentIndexer | None = None


def get_document_indexer() -> DocumentIndexer:
    """Return the module-level indexer singleton."""
    global _indexer
    if _indexer is None:
        _indexer = DocumentIndexer()
    return _indexer
