"""Domain-specific exceptions for the course assistant.

These exceptions let the indexing, retrieval and streaming layers distinguish
between failure modes and respond with the right HTTP status or SSE event.
Expected retrieval outcomes (no embeddings yet, no match) are NOT exceptions;
they are reported through ``RetrievalStatus``.
"""

from __future__ import annotations

# Upstream error bodies are truncated to keep logs and SSE payloads bounded.
MAX_ERROR_BODY_CHARS = 300


class CourseAssistantError(Exception):
    """Base class for all course assistant errors."""


class ConfigurationError(CourseAssistantError):
    """A required credential or setting is missing.

    Raised lazily at call time, never at import or startup.  Not retried.
    """

    def __init__(self, setting: str, message: str = "") -> None:
        self.setting = setting
        super().__init__(message or f"{setting.upper()} is not set")


class UpstreamError(CourseAssistantError):
    """The embedding or completion service returned a non-success status."""

    def __init__(self, service: str, status_code: int, body: str = "") -> None:
        self.service = service
        self.status_code = status_code
        self.body = (body or "")[:MAX_ERROR_BODY_CHARS]
        super().__init__(f"{service} API error ({status_code}): {self.body}")


class NetworkError(CourseAssistantError):
    """Connectivity failure (refused, unreachable, timed out) to a remote service."""

    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(f"{service}: {message}")


class RequestValidationError(CourseAssistantError):
    """A request is missing required fields or carries malformed values.

    Surfaced as HTTP 400 before any side effect is performed.
    """

    def __init__(self, message: str, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class NotFoundError(CourseAssistantError):
    """A referenced record does not exist or is not owned by the caller.

    Ownership failures use this same error so the two cases stay
    indistinguishable to the caller.
    """

    def __init__(self, entity_type: str, entity_id: str) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} '{entity_id}' not found")


class ForbiddenError(CourseAssistantError):
    """The caller is authenticated but may not perform this action."""
