"""Custom exception hierarchy for the course assistant."""

from errors.exceptions import (
    ConfigurationError,
    CourseAssistantError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RequestValidationError,
    UpstreamError,
)

__all__ = [
    "ConfigurationError",
    "CourseAssistantError",
    "ForbiddenError",
    "NetworkError",
    "NotFoundError",
    "RequestValidationError",
    "UpstreamError",
]
