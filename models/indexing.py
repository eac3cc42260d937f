"""Models for document indexing, uploads and indexing task state."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import Field

from models.base import CamelModel


class IndexStatus(str, Enum):
    """Lifecycle of one background indexing task."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class IndexRequest(CamelModel):
    """One file to index.  Body of ``POST /api/embed``."""

    file_id: str = ""
    file_name: str = ""
    file_url: str = ""
    course_id: str = ""

    def missing_fields(self) -> list[str]:
        return [
            alias
            for alias, value in (
                ("fileId", self.file_id),
                ("fileName", self.file_name),
                ("fileUrl", self.file_url),
                ("courseId", self.course_id),
            )
            if not value
        ]


class IndexResult(CamelModel):
    success: bool
    chunk_count: int = 0
    error: str | None = None

    @classmethod
    def ok(cls, chunk_count: int) -> IndexResult:
        return cls(success=True, chunk_count=chunk_count)

    @classmethod
    def failed(cls, error: str) -> IndexResult:
        return cls(success=False, error=error)


class IndexTask(CamelModel):
    """Observable state of a queued indexing job."""

    file_id: str
    course_id: str
    file_name: str
    status: IndexStatus = IndexStatus.PENDING
    chunk_count: int = 0
    error: str | None = None
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def settled(self) -> bool:
        return self.status in (IndexStatus.COMPLETED, IndexStatus.FAILED)


class UploadFileItem(CamelModel):
    """A file already written to blob storage, described by the client."""

    file_id: str
    file_name: str
    file_url: str
    file_size: int = 0
    file_type: str = ""


class UploadRequest(CamelModel):
    """Body of ``POST /api/upload``."""

    course_id: str = ""
    user_id: str = ""
    files: list[UploadFileItem] = Field(default_factory=list)
