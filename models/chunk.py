"""Document chunk and retrieval result models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from models.base import CamelModel


class TextChunk(CamelModel):
    """One segment produced by the chunker, before embedding."""

    content: str
    chunk_index: int
    token_count: int


class DocumentChunk(CamelModel):
    """A stored chunk row: text, position within its file and its vector.

    Unique per ``(course_id, file_id, chunk_index)``.  Rows are replaced
    wholesale when a file is re-indexed and never edited in place.
    """

    course_id: str
    file_id: str
    file_name: str
    chunk_index: int
    content: str
    token_count: int = 0
    embedding: list[float] = Field(default_factory=list, repr=False)


class ChunkSource(str, Enum):
    """Which retrieval path produced a chunk."""

    INTRO = "intro"
    SIMILARITY = "similarity"


class RetrievedChunk(CamelModel):
    """A chunk returned by retrieval, without its vector."""

    file_id: str = ""
    file_name: str
    chunk_index: int
    content: str
    similarity: float | None = None
    source: ChunkSource = ChunkSource.SIMILARITY

    @property
    def key(self) -> str:
        return f"{self.file_name}::{self.chunk_index}"


class RetrievalStatus(str, Enum):
    OK = "ok"
    NO_EMBEDDINGS = "no_embeddings"
    NO_MATCH = "no_match"
    ERROR = "error"


class RetrievalResult(CamelModel):
    """Assembled course context for one question.  Computed per request."""

    text: str = ""
    file_count: int = 0
    file_names: list[str] = Field(default_factory=list)
    chunk_count: int = 0
    status: RetrievalStatus
    chunks: list[RetrievedChunk] = Field(default_factory=list)

    @property
    def has_materials(self) -> bool:
        return self.status == RetrievalStatus.OK and bool(self.text)
