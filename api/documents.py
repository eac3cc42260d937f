"""Course document endpoints — indexing, uploads, index status and deletion.

- ``POST /api/embed``: index one file inline (service-to-service, guarded by
  ``X-Internal-Secret`` when configured).
- ``POST /api/upload``: register already-stored files and queue background
  indexing; responds without waiting for indexing.
- ``GET /api/files/{file_id}/index-status``: observable indexing state.
- ``DELETE /api/files/{file_id}``: owner-only file + chunk deletion.
- ``GET /api/courses/{course_id}/files``: owner-only file listing.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from config.settings import get_settings
from course_rag.access import require_owned_course
from course_rag.auth import verify_internal_secret
from course_rag.extraction import file_extension
from course_rag.indexer import get_document_indexer
from course_rag.store import get_course_store
from errors.exceptions import ForbiddenError, NotFoundError, RequestValidationError
from models.course import CourseFile
from models.indexing import IndexRequest, UploadRequest
from services.index_queue import get_indexing_queue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["documents"])


def _format_size(size: int) -> str:
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:g} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


@router.post("/embed")
async def embed_file(req: IndexRequest, request: Request):
    """Index one file and report the chunk count."""
    verify_internal_secret(request)

    if req.missing_fields():
        raise RequestValidationError(
            "fileId, fileName, fileUrl, and courseId are all required",
        )

    result = await get_document_indexer().index_file(req)
    if not result.success:
        return JSONResponse({"success": False, "error": result.error}, status_code=500)
    return {"success": True, "chunks": result.chunk_count}


@router.post("/upload")
async def upload_files(req: UploadRequest):
    """Register uploaded files for a course and queue their indexing."""
    settings = get_settings()
    store = get_course_store()

    # ── Auth: caller must be the professor who owns the course ──
    if not req.user_id:
        raise ForbiddenError("Authentication required")
    if not req.course_id:
        raise RequestValidationError("courseId is required", field="courseId")
    try:
        await require_owned_course(store, req.course_id, req.user_id)
    except NotFoundError:
        raise ForbiddenError("Not authorized for this course") from None
    user = await store.get_user(req.user_id)
    if user is None or not user.is_professor:
        raise ForbiddenError("Only professors can upload files")

    # ── Validation ──
    if not req.files:
        raise RequestValidationError("No files provided", field="files")
    if len(req.files) > settings.max_upload_files:
        raise RequestValidationError(
            f"Too many files in one batch ({len(req.files)}). "
            f"Split into batches of {settings.max_upload_files} or fewer.",
            field="files",
        )

    allowed = {f".{ext.lower().lstrip('.')}" for ext in settings.allowed_extensions}
    invalid = [f.file_name for f in req.files if file_extension(f.file_name) not in allowed]
    if invalid:
        raise RequestValidationError(
            f"Invalid file types: {', '.join(invalid)}. "
            f"Supported: {', '.join(e.upper() for e in settings.allowed_extensions)}",
            field="files",
        )
    oversized = [f.file_name for f in req.files if f.file_size > settings.max_file_size]
    if oversized:
        raise RequestValidationError(
            f"Files too large: {', '.join(oversized)}. "
            f"Maximum size: {_format_size(settings.max_file_size)}",
            field="files",
        )

    # ── Register + queue indexing (response does not wait) ──
    for f in req.files:
        await store.add_course_file(CourseFile(
            file_id=f.file_id,
            course_id=req.course_id,
            file_name=f.file_name,
            file_url=f.file_url,
            file_size=f.file_size,
            file_type=f.file_type or file_extension(f.file_name).lstrip(".") or "unknown",
        ))

    tasks = get_indexing_queue().submit_batch(
        [
            IndexRequest(
                file_id=f.file_id,
                file_name=f.file_name,
                file_url=f.file_url,
                course_id=req.course_id,
            )
            for f in req.files
        ],
        label=req.course_id,
    )
    logger.info("Upload accepted: %d file(s) for course %s", len(req.files), req.course_id)

    return {
        "success": True,
        "files": [
            {
                "fileId": t.file_id,
                "fileName": t.file_name,
                "indexStatus": t.status.value,
            }
            for t in tasks
        ],
    }


@router.get("/files/{file_id}/index-status")
async def index_status(file_id: str):
    task = get_indexing_queue().get(file_id)
    if task is None:
        raise NotFoundError("indexing task", file_id)
    return task.model_dump(by_alias=True, mode="json")


@router.delete("/files/{file_id}")
async def delete_file(file_id: str, user_id: str = Query("", alias="userId")):
    """Delete a file record and its chunks.  Owner only; fails closed as 404."""
    if not user_id:
        raise RequestValidationError("userId is required", field="userId")

    store = get_course_store()
    course_file = await store.get_course_file(file_id)
    if course_file is None:
        raise NotFoundError("file", file_id)
    try:
        await require_owned_course(store, course_file.course_id, user_id)
    except NotFoundError:
        raise NotFoundError("file", file_id) from None

    await asyncio.gather(
        get_document_indexer().delete_file_chunks(file_id),
        store.delete_course_file(file_id),
    )
    logger.info("Deleted file %s from course %s", file_id, course_file.course_id)
    return {"success": True}


@router.get("/courses/{course_id}/files")
async def list_files(course_id: str, user_id: str = Query("", alias="userId")):
    """List a course's files for its owning professor."""
    if not user_id:
        raise RequestValidationError("userId is required", field="userId")

    store = get_course_store()
    try:
        await require_owned_course(store, course_id, user_id)
    except NotFoundError:
        raise ForbiddenError("Not authorized to view this course's files") from None

    files = await store.list_course_files(course_id)
    return {"files": [f.model_dump(by_alias=True, mode="json") for f in files]}
