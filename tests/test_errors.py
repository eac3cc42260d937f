"""Tests for exception types and the network-error classifier."""

import asyncio

import httpx
import pytest

from errors.exceptions import (
    ConfigurationError,
    NetworkError,
    NotFoundError,
    UpstreamError,
)
from models.errors import (
    GATEWAY_UNREACHABLE_PREFIX,
    ErrorCode,
    format_error,
    gateway_unreachable_message,
    is_network_error,
    to_user_message,
)


def test_configuration_error_message():
    assert str(ConfigurationError("portkey_api_key")) == "PORTKEY_API_KEY is not set"


def test_upstream_error_truncates_body():
    err = UpstreamError("Embeddings", 500, "x" * 1000)
    assert len(err.body) == 300
    assert err.status_code == 500


def test_not_found_message():
    assert str(NotFoundError("file", "f-1")) == "file 'f-1' not found"


@pytest.mark.parametrize("exc", [
    NetworkError("AI Gateway", "unreachable"),
    httpx.ConnectError("boom"),
    ConnectionRefusedError(),
    asyncio.TimeoutError(),
    RuntimeError("fetch failed"),
    RuntimeError("Connection refused by peer"),
    RuntimeError("Request timed out after 60s"),
    OSError("Temporary failure in name resolution"),
])
def test_network_errors_recognised(exc):
    assert is_network_error(exc)


@pytest.mark.parametrize("exc", [
    ValueError("bad json"),
    RuntimeError("model not found"),
    UpstreamError("AI Gateway", 504, "upstream timed out"),
])
def test_other_errors_not_network(exc):
    assert not is_network_error(exc)


def test_network_error_found_in_cause_chain():
    try:
        try:
            raise ConnectionResetError()
        except ConnectionResetError as inner:
            raise RuntimeError("stream aborted") from inner
    except RuntimeError as outer:
        assert is_network_error(outer)


def test_user_message_for_network_failure():
    msg = to_user_message(httpx.ConnectError("refused"), "Connect to the VPN.")
    assert msg == gateway_unreachable_message("Connect to the VPN.")
    assert msg.startswith(GATEWAY_UNREACHABLE_PREFIX)


def test_user_message_passthrough():
    assert to_user_message(ValueError("quota exceeded"), "hint") == "quota exceeded"
    assert to_user_message(ValueError(), "hint") == "ValueError"


def test_format_error():
    assert format_error(ErrorCode.NOT_FOUND, "no file") == "NOT_FOUND: no file"
