"""Tests for CourseRetriever and the merge / render helpers."""

import pytest

from config.settings import Settings
from course_rag.retriever import (
    CHUNK_SEPARATOR,
    CourseRetriever,
    merge_chunks,
    render_chunk,
)
from models.chunk import ChunkSource, RetrievalStatus, RetrievedChunk


def _rc(file_name, idx, source=ChunkSource.SIMILARITY, similarity=None, content="text"):
    return RetrievedChunk(
        file_name=file_name, chunk_index=idx, content=content,
        source=source, similarity=similarity,
    )


@pytest.fixture
def retrieval_settings():
    return Settings(_env_file=None, portkey_api_key="test-key", rag_match_count=3)


@pytest.fixture
async def seeded_store(memory_store, make_chunk):
    await memory_store.insert_chunks([
        make_chunk("lecture.pdf", 0, "Course overview of cell biology topics"),
        make_chunk("lecture.pdf", 1, "photosynthesis photosynthesis in plants"),
        make_chunk("lecture.pdf", 2, "cell walls"),
        make_chunk("lecture.pdf", 3, "mitochondria"),
        make_chunk("lecture.pdf", 4, "photosynthesis light reactions"),
        make_chunk("syllabus.pdf", 0, "syllabus grading"),
        make_chunk("syllabus.pdf", 1, "week 1 readings"),
        make_chunk("syllabus.pdf", 2, "week 2 readings"),
        make_chunk("syllabus.pdf", 3, "week 3 readings"),
    ])
    return memory_store


# ── Helpers ──────────────────────────────────────────────────


def test_render_chunk_uses_one_based_section():
    assert render_chunk(_rc("notes.pdf", 0, content="Cells.")) == (
        "[Source: notes.pdf, section 1]\nCells."
    )


def test_merge_intro_first_and_dedupes():
    intro = [_rc("a.pdf", 0, ChunkSource.INTRO), _rc("a.pdf", 1, ChunkSource.INTRO)]
    similar = [_rc("b.pdf", 5, similarity=0.9), _rc("a.pdf", 1, similarity=0.8)]

    merged = merge_chunks(intro, similar)

    assert [c.key for c in merged] == ["a.pdf::0", "a.pdf::1", "b.pdf::5"]
    collided = merged[1]
    assert collided.source == ChunkSource.INTRO
    assert collided.similarity == 0.8
    assert merged[0].similarity is None


def test_merge_drops_duplicate_similarity_rows():
    similar = [_rc("a.pdf", 0, similarity=0.9), _rc("a.pdf", 0, similarity=0.9)]
    assert len(merge_chunks([], similar)) == 1


# ── Retrieval outcomes ───────────────────────────────────────


@pytest.mark.asyncio
async def test_intro_chunks_plus_similarity(seeded_store, fake_embedder, retrieval_settings):
    retriever = CourseRetriever(seeded_store, fake_embedder, retrieval_settings)

    result = await retriever.retrieve("What is photosynthesis?", "c-bio")

    assert result.status == RetrievalStatus.OK
    assert [c.key for c in result.chunks] == [
        "lecture.pdf::0", "lecture.pdf::1", "lecture.pdf::2",
        "syllabus.pdf::0", "syllabus.pdf::1", "syllabus.pdf::2",
        "lecture.pdf::4",
    ]
    assert result.chunk_count == 7
    assert result.file_names == ["lecture.pdf", "syllabus.pdf"]
    assert result.file_count == 2
    assert result.has_materials

    intro_hit = result.chunks[1]
    assert intro_hit.source == ChunkSource.INTRO
    assert intro_hit.similarity == pytest.approx(0.9988, abs=1e-3)
    assert result.chunks[-1].source == ChunkSource.SIMILARITY

    sections = result.text.split(CHUNK_SEPARATOR)
    assert len(sections) == 7
    assert sections[0] == (
        "[Source: lecture.pdf, section 1]\nCourse overview of cell biology topics"
    )
    assert sections[-1].startswith("[Source: lecture.pdf, section 5]")


@pytest.mark.asyncio
async def test_chunks_beyond_intro_need_similarity(seeded_store, fake_embedder,
                                                   retrieval_settings):
    retriever = CourseRetriever(seeded_store, fake_embedder, retrieval_settings)

    result = await retriever.retrieve("What is photosynthesis?", "c-bio")

    keys = {c.key for c in result.chunks}
    assert "lecture.pdf::3" not in keys
    assert "syllabus.pdf::3" not in keys


@pytest.mark.asyncio
async def test_no_embeddings_skips_embedding_call(memory_store, fake_embedder,
                                                  retrieval_settings):
    retriever = CourseRetriever(memory_store, fake_embedder, retrieval_settings)

    result = await retriever.retrieve("anything", "c-bio")

    assert result.status == RetrievalStatus.NO_EMBEDDINGS
    assert not result.has_materials
    assert fake_embedder.calls == []


@pytest.mark.asyncio
async def test_no_match_when_both_paths_empty(seeded_store, fake_embedder):
    settings = Settings(
        _env_file=None, portkey_api_key="k", rag_match_count=0, intro_chunk_max_index=-1,
    )
    retriever = CourseRetriever(seeded_store, fake_embedder, settings)

    result = await retriever.retrieve("anything", "c-bio")

    assert result.status == RetrievalStatus.NO_MATCH
    assert result.text == ""


@pytest.mark.asyncio
async def test_embedding_failure_is_error(seeded_store, fake_embedder,
                                          retrieval_settings, monkeypatch):
    async def boom(texts):
        raise RuntimeError("gateway down")

    monkeypatch.setattr(fake_embedder, "embed_texts", boom)
    retriever = CourseRetriever(seeded_store, fake_embedder, retrieval_settings)

    result = await retriever.retrieve("photosynthesis", "c-bio")

    assert result.status == RetrievalStatus.ERROR
    assert result.text == ""


@pytest.mark.asyncio
async def test_intro_failure_degrades_to_similarity_only(seeded_store, fake_embedder,
                                                         retrieval_settings, monkeypatch):
    async def boom(course_id, max_chunk_index):
        raise RuntimeError("timeout")

    monkeypatch.setattr(seeded_store, "get_intro_chunks", boom)
    retriever = CourseRetriever(seeded_store, fake_embedder, retrieval_settings)

    result = await retriever.retrieve("photosynthesis", "c-bio")

    assert result.status == RetrievalStatus.OK
    assert result.chunk_count == 3
    assert all(c.source == ChunkSource.SIMILARITY for c in result.chunks)


@pytest.mark.asyncio
async def test_count_failure_is_error(seeded_store, fake_embedder,
                                      retrieval_settings, monkeypatch):
    async def boom(course_id):
        raise ConnectionError("db unreachable")

    monkeypatch.setattr(seeded_store, "count_chunks", boom)
    retriever = CourseRetriever(seeded_store, fake_embedder, retrieval_settings)

    result = await retriever.retrieve("photosynthesis", "c-bio")

    assert result.status == RetrievalStatus.ERROR
