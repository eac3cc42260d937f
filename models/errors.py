"""Structured error codes and user-facing error text for the chat stream.

SSE stream errors are emitted as ``data: {"error": "<text>"}`` followed by the
regular ``data: [DONE]`` terminator.  This module owns the text of those
events and the classifier that recognises network-class failures.
"""

from __future__ import annotations

import asyncio
import re
from enum import Enum

import httpx

from errors.exceptions import NetworkError, UpstreamError


class ErrorCode(str, Enum):
    """Error codes shared by JSON error bodies and log lines."""

    INVALID_REQUEST = "INVALID_REQUEST"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    LLM_PROVIDER_ERROR = "LLM_PROVIDER_ERROR"
    GATEWAY_UNREACHABLE = "GATEWAY_UNREACHABLE"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"


NO_RESPONSE_MESSAGE = "No response from AI. Please try again."
GATEWAY_UNREACHABLE_PREFIX = "⚠️ Cannot connect to the AI Gateway."

# Message fragments that identify connection refused / unreachable / timeout
# failures when the exception type alone is not conclusive.
_NETWORK_SIGNATURE_RE = re.compile(
    r"fetch failed"
    r"|cannot connect"
    r"|connection (?:refused|reset|error|aborted)"
    r"|connecterror"
    r"|und_err_connect"
    r"|network is unreachable"
    r"|name or service not known"
    r"|nodename nor servname"
    r"|temporary failure in name resolution"
    r"|timed? ?out",
    re.IGNORECASE,
)

_NETWORK_EXC_TYPES: tuple[type[BaseException], ...] = (
    NetworkError,
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
)


def format_error(code: ErrorCode, detail: str) -> str:
    """Format a generic error for logs: ``{ERROR_CODE}: {detail}``."""
    return f"{code.value}: {detail}"


def is_network_error(exc: BaseException) -> bool:
    """True when *exc* (or its cause chain) looks like a connectivity failure.

    Checks the exception type first, then falls back to well-known message
    signatures (connection refused, DNS failure, timeout).
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, UpstreamError):
            return False
        if isinstance(current, _NETWORK_EXC_TYPES):
            return True
        if _NETWORK_SIGNATURE_RE.search(str(current)):
            return True
        current = current.__cause__ or current.__context__
    return False


def gateway_unreachable_message(hint: str) -> str:
    """User-facing guidance shown when the gateway cannot be reached."""
    return f"{GATEWAY_UNREACHABLE_PREFIX}\n\n{hint}"


def to_user_message(exc: BaseException, network_hint: str) -> str:
    """Translate a streaming failure into the text of the terminal error event.

    Network-class failures become the gateway guidance message; everything
    else is passed through with its own message.
    """
    if is_network_error(exc):
        return gateway_unreachable_message(network_hint)
    return str(exc) or exc.__class__.__name__
