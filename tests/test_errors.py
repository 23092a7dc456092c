"""Tests for payment_sdk.errors."""

from __future__ import annotations

import pytest

from payment_sdk.errors import (
    InvalidResponseError,
    MissingAPIKeyError,
    NetworkError,
    PaymentError,
    RequestFailedError,
    ServerError,
    UnknownPaymentError,
)


@pytest.mark.parametrize(
    "error, code",
    [
        (MissingAPIKeyError(), "MISSING_API_KEY"),
        (NetworkError(OSError("reset")), "NETWORK_ERROR"),
        (ServerError(503), "SERVER_ERROR"),
        (InvalidResponseError(), "INVALID_RESPONSE"),
        (RequestFailedError(), "REQUEST_FAILED"),
        (UnknownPaymentError(), "UNKNOWN"),
    ],
)
def test_codes_and_hierarchy(error: PaymentError, code: str) -> None:
    assert isinstance(error, PaymentError)
    assert error.code == code
    assert error.message == str(error)


def test_only_missing_key_is_terminal() -> None:
    assert MissingAPIKeyError.retryable is False
    for cls in (NetworkError, ServerError, InvalidResponseError, RequestFailedError, UnknownPaymentError):
        assert cls.retryable is True


def test_messages() -> None:
    assert str(MissingAPIKeyError()) == (
        "Missing API key. Please set your API key before making a request."
    )
    assert str(ServerError(502)) == (
        "Server error occurred with status code 502. Please try again later."
    )
    assert "connection refused" in str(NetworkError(ConnectionError("connection refused")))
    assert str(InvalidResponseError()) == "The server response was invalid."
    assert "missing field" in str(InvalidResponseError(KeyError("missing field")))
    assert str(UnknownPaymentError()) == "An unknown error occurred. Please contact support."


def test_attributes_preserved() -> None:
    cause = TimeoutError("slow")
    assert NetworkError(cause).cause is cause
    assert ServerError(418).status_code == 418
    assert UnknownPaymentError(cause).cause is cause


def test_custom_message_and_code() -> None:
    error = PaymentError("declined", code="DECLINED")
    assert error.message == "declined"
    assert error.code == "DECLINED"
    assert ServerError(500, message="custom").message == "custom"


@pytest.mark.parametrize(
    "error",
    [
        NetworkError(OSError("reset"), code="GATEWAY_RESET"),
        ServerError(502, code="GATEWAY_RESET"),
        InvalidResponseError(ValueError("bad"), code="GATEWAY_RESET"),
        UnknownPaymentError(RuntimeError("?"), code="GATEWAY_RESET"),
    ],
)
def test_subclasses_accept_code(error: PaymentError) -> None:
    assert error.code == "GATEWAY_RESET"
    assert error.retryable is True
    assert error.message == str(error)
