"""Background indexing queue with observable per-file task state.

Uploads respond before indexing finishes.  Each file is indexed in its own
detached asyncio task; one file's failure never affects another's.  Task
state (pending → processing → completed | failed) stays queryable by file
id so a silent indexing failure after a successful upload can be observed.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from datetime import datetime, timezone

from course_rag.indexer import DocumentIndexer, get_document_indexer
from models.indexing import IndexRequest, IndexStatus, IndexTask

logger = logging.getLogger(__name__)

# Finished task records kept for status queries.
MAX_TRACKED_TASKS = 1000


class IndexingQueue:
    """Schedules indexing jobs and records their outcome."""

    def __init__(
        self,
        indexer: DocumentIndexer | None = None,
        max_tracked: int = MAX_TRACKED_TASKS,
    ) -> None:
        self._indexer = indexer
        self._max_tracked = max_tracked
        self._tasks: OrderedDict[str, IndexTask] = OrderedDict()
        self._running: set[asyncio.Task] = set()
        self._summaries: set[asyncio.Task] = set()

    @property
    def indexer(self) -> DocumentIndexer:
        if self._indexer is None:
            self._indexer = get_document_indexer()
        return self._indexer

    def get(self, file_id: str) -> IndexTask | None:
        return self._tasks.get(file_id)

    @property
    def pending_count(self) -> int:
        """Files queued or indexing.  Batch summary tasks are not counted."""
        return len(self._running)

    def _track(self, task: IndexTask) -> None:
        self._tasks.pop(task.file_id, None)
        self._tasks[task.file_id] = task
        while len(self._tasks) > self._max_tracked:
            oldest_id, oldest = next(iter(self._tasks.items()))
            if not oldest.settled:
                break
            del self._tasks[oldest_id]

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        return task

    async def _run(self, req: IndexRequest, state: IndexTask) -> IndexTask:
        state.status = IndexStatus.PROCESSING
        try:
            result = await self.indexer.index_file(req)
        except Exception as exc:
            logger.error("Indexing task crashed for '%s': %s", req.file_name, exc, exc_info=True)
            state.status = IndexStatus.FAILED
            state.error = str(exc) or exc.__class__.__name__
        else:
            if result.success:
                state.status = IndexStatus.COMPLETED
                state.chunk_count = result.chunk_count
                logger.info("[EMBED] %s: %d chunks stored", req.file_name, result.chunk_count)
            else:
                state.status = IndexStatus.FAILED
                state.error = result.error
                logger.warning("[EMBED] %s: %s", req.file_name, result.error)
        state.finished_at = datetime.now(timezone.utc)
        return state

    def submit(self, req: IndexRequest) -> tuple[IndexTask, asyncio.Task]:
        """Schedule one file.  Must be called from a running event loop."""
        state = IndexTask(
            file_id=req.file_id,
            course_id=req.course_id,
            file_name=req.file_name,
        )
        self._track(state)
        return state, self._spawn(self._run(req, state))

    def submit_batch(self, reqs: list[IndexRequest], label: str = "") -> list[IndexTask]:
        """Schedule every file and log a summary once all of them settle."""
        submitted = [self.submit(r) for r in reqs]
        if submitted:
            summary = asyncio.create_task(self._summarize([t for _, t in submitted], label))
            self._summaries.add(summary)
            summary.add_done_callback(self._summaries.discard)
        return [state for state, _ in submitted]

    async def _summarize(self, tasks: list[asyncio.Task], label: str) -> None:
        results = await asyncio.gather(*tasks, return_exceptions=True)
        states = [r for r in results if isinstance(r, IndexTask)]
        ok = sum(1 for s in states if s.status == IndexStatus.COMPLETED)
        chunks = sum(s.chunk_count for s in states)
        logger.info(
            "Indexing batch %s settled: %d/%d files indexed, %d chunks, %d failed",
            label or "-", ok, len(tasks), chunks, len(tasks) - ok,
        )

    async def drain(self) -> None:
        """Wait for every outstanding task (used at shutdown and in tests)."""
        while self._running or self._summaries:
            await asyncio.gather(*self._running, *self._summaries, return_exceptions=True)


_queue: IndexingQueue | None = None


def get_indexing_queue() -> IndexingQueue:
    """Return the module-level indexing queue singleton."""
    global _queue
    if _queue is None:
        _queue = IndexingQueue()
    return _queue
