"""Course and course-file models plus their store-boundary decoders."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from models.base import CamelModel
from models.user import UserRole


class Course(CamelModel):
    """A professor-owned course.  Hidden courses are invisible to students."""

    id: str
    name: str = ""
    description: str = ""
    professor_id: str = ""
    professor_name: str = ""
    is_visible: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CourseFile(CamelModel):
    """An uploaded file registered against a course."""

    file_id: str
    course_id: str
    file_name: str
    file_url: str = ""
    file_size: int = 0
    file_type: str = "unknown"
    uploaded_at: datetime | None = None


class CourseAccessContext(CamelModel):
    """Everything needed to decide whether a course's materials may be used."""

    course_id: str
    professor_id: str
    is_visible: bool
    requesting_user_id: str = ""
    requesting_user_role: UserRole = "student"

    @property
    def is_owner(self) -> bool:
        return (
            self.requesting_user_role == "professor"
            and bool(self.requesting_user_id)
            and self.requesting_user_id == self.professor_id
        )

    @property
    def materials_allowed(self) -> bool:
        """Visible courses are open to everyone; hidden ones only to their owner."""
        return self.is_visible or self.is_owner


def course_from_row(row: Mapping[str, Any]) -> Course:
    """Decode a ``courses`` row.  ``is_visible`` defaults to True when absent."""
    return Course(
        id=str(row["id"]),
        name=row.get("name") or "",
        description=row.get("description") or "",
        professor_id=str(row.get("professor_id") or ""),
        professor_name=row.get("professor_name") or "",
        is_visible=row.get("is_visible") is not False,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def course_file_from_row(row: Mapping[str, Any]) -> CourseFile:
    """Decode a ``course_files`` row."""
    return CourseFile(
        file_id=str(row["file_id"]),
        course_id=str(row["course_id"]),
        file_name=row.get("file_name") or "",
        file_url=row.get("file_url") or "",
        file_size=row.get("file_size") or 0,
        file_type=row.get("file_type") or "unknown",
        uploaded_at=row.get("uploaded_at"),
    )
