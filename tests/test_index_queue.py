"""Tests for the background indexing queue."""

import asyncio

import pytest

from models.indexing import IndexRequest, IndexResult, IndexStatus
from services.index_queue import IndexingQueue


class FakeIndexer:
    """Outcome is chosen by file name: ok-*, fail-*, crash-*."""

    def __init__(self, gate: asyncio.Event | None = None):
        self.gate = gate
        self.seen: list[str] = []

    async def index_file(self, req: IndexRequest) -> IndexResult:
        if self.gate is not None:
            await self.gate.wait()
        self.seen.append(req.file_name)
        if req.file_name.startswith("fail"):
            return IndexResult.failed("No text extracted from file")
        if req.file_name.startswith("crash"):
            raise RuntimeError("worker exploded")
        return IndexResult.ok(4)


def _req(name: str) -> IndexRequest:
    return IndexRequest(
        file_id=f"id-{name}", file_name=name,
        file_url=f"https://blob.test/{name}", course_id="c-bio",
    )


@pytest.mark.asyncio
async def test_batch_outcomes_are_isolated():
    queue = IndexingQueue(FakeIndexer())

    states = queue.submit_batch([_req("ok-a.pdf"), _req("fail-b.pdf"), _req("crash-c.pdf")])
    assert all(s.status == IndexStatus.PENDING for s in states)

    await queue.drain()

    ok, failed, crashed = (queue.get(s.file_id) for s in states)
    assert ok.status == IndexStatus.COMPLETED
    assert ok.chunk_count == 4
    assert failed.status == IndexStatus.FAILED
    assert failed.error == "No text extracted from file"
    assert crashed.status == IndexStatus.FAILED
    assert crashed.error == "worker exploded"
    assert all(s.finished_at is not None for s in (ok, failed, crashed))
    assert queue.pending_count == 0


@pytest.mark.asyncio
async def test_status_observable_while_running():
    gate = asyncio.Event()
    queue = IndexingQueue(FakeIndexer(gate))

    state, task = queue.submit(_req("ok-slow.pdf"))
    await asyncio.sleep(0)

    assert queue.get("id-ok-slow.pdf").status == IndexStatus.PROCESSING
    assert queue.pending_count == 1
    assert not state.settled

    gate.set()
    await task
    assert state.status == IndexStatus.COMPLETED
    assert state.settled


@pytest.mark.asyncio
async def test_pending_count_ignores_batch_summary():
    gate = asyncio.Event()
    queue = IndexingQueue(FakeIndexer(gate))

    queue.submit_batch([_req("ok-only.pdf")], label="c-bio")
    await asyncio.sleep(0)
    assert queue.pending_count == 1

    gate.set()
    await queue.drain()
    assert queue.pending_count == 0
    assert queue.get("id-ok-only.pdf").status == IndexStatus.COMPLETED


@pytest.mark.asyncio
async def test_resubmission_replaces_record():
    queue = IndexingQueue(FakeIndexer())

    queue.submit(_req("ok-a.pdf"))
    await queue.drain()
    first = queue.get("id-ok-a.pdf")

    queue.submit(_req("ok-a.pdf"))
    assert queue.get("id-ok-a.pdf") is not first
    await queue.drain()


@pytest.mark.asyncio
async def test_settled_records_are_evicted_oldest_first():
    queue = IndexingQueue(FakeIndexer(), max_tracked=2)

    for name in ("ok-1", "ok-2"):
        queue.submit(_req(name))
    await queue.drain()
    queue.submit(_req("ok-3"))
    await queue.drain()

    assert queue.get("id-ok-1") is None
    assert queue.get("id-ok-2") is not None
    assert queue.get("id-ok-3") is not None


def test_unknown_file():
    assert IndexingQueue(FakeIndexer()).get("nope") is None
