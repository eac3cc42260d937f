"""FastAPI entry point for the course assistant service."""

import logging
from contextlib import asynccontextmanager

import litellm
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import get_settings
from course_rag.store import get_course_store
from errors.exceptions import (
    ConfigurationError,
    CourseAssistantError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RequestValidationError,
    UpstreamError,
)
from models.errors import ErrorCode, format_error
from services.concurrency import ConcurrencyLimitMiddleware
from services.index_queue import get_indexing_queue
from services.middleware import RequestIdMiddleware, configure_logging

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# ── Global LiteLLM settings ──────────────────────────────────
litellm.request_timeout = 60  # seconds, non-streaming gateway calls
litellm.suppress_debug_info = True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle — open the store, drain indexing on exit."""
    store = get_course_store()
    await store.initialize()

    yield

    await get_indexing_queue().drain()
    await store.close()


app = FastAPI(
    title="Course Study Buddy",
    description="Retrieval-augmented course assistant with streaming chat",
    version="1.0.0",
    lifespan=lifespan,
)

# ── Middleware stack (outermost first) ─────────────────────────
# CORS → RequestId → ConcurrencyLimit → route handler
app.add_middleware(ConcurrencyLimitMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Error mapping ────────────────────────────────────────────

_STATUS_BY_ERROR: list[tuple[type[CourseAssistantError], int, ErrorCode]] = [
    (RequestValidationError, 400, ErrorCode.INVALID_REQUEST),
    (ForbiddenError, 403, ErrorCode.FORBIDDEN),
    (NotFoundError, 404, ErrorCode.NOT_FOUND),
    (NetworkError, 502, ErrorCode.GATEWAY_UNREACHABLE),
    (UpstreamError, 502, ErrorCode.LLM_PROVIDER_ERROR),
    (ConfigurationError, 500, ErrorCode.INTERNAL_ERROR),
]


@app.exception_handler(CourseAssistantError)
async def course_assistant_error_handler(request: Request, exc: CourseAssistantError):
    status, code = next(
        ((status, code) for cls, status, code in _STATUS_BY_ERROR if isinstance(exc, cls)),
        (500, ErrorCode.INTERNAL_ERROR),
    )
    detail = format_error(code, str(exc))
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, detail)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, detail)
    return JSONResponse({"error": str(exc)}, status_code=status)


# ── Register routers ────────────────────────────────────────
from api.chat import router as chat_router  # noqa: E402
from api.documents import router as documents_router  # noqa: E402
from api.health import router as health_router  # noqa: E402
from api.quiz import router as quiz_router  # noqa: E402
from api.session import router as session_router  # noqa: E402

app.include_router(health_router)
app.include_router(chat_router)
app.include_router(documents_router)
app.include_router(quiz_router)
app.include_router(session_router)


if __name__ == "__main__":
    if settings.debug:
        # Development: single worker with reload
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            reload=True,
        )
    else:
        # Production: prefer gunicorn main:app -c deploy/gunicorn.conf.py
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=4,
            timeout_keep_alive=120,
        )
