"""Tests for payment_sdk.exit_codes."""

from __future__ import annotations

import pytest

from payment_sdk.errors import (
    InvalidResponseError,
    MissingAPIKeyError,
    NetworkError,
    RequestFailedError,
    ServerError,
    UnknownPaymentError,
)
from payment_sdk.exit_codes import (
    AUTH_ERROR,
    BAD_RESPONSE,
    ERROR_CODE_MAP,
    OTHER_ERROR,
    SERVICE_UNAVAILABLE,
    SUCCESS,
    exit_code_for,
)


def test_codes_are_distinct() -> None:
    codes = [SUCCESS, SERVICE_UNAVAILABLE, AUTH_ERROR, BAD_RESPONSE, OTHER_ERROR]
    assert len(set(codes)) == len(codes)
    assert SUCCESS == 0


@pytest.mark.parametrize(
    "error, expected",
    [
        (NetworkError(OSError("reset")), SERVICE_UNAVAILABLE),
        (ServerError(500), SERVICE_UNAVAILABLE),
        (RequestFailedError(), SERVICE_UNAVAILABLE),
        (MissingAPIKeyError(), AUTH_ERROR),
        (InvalidResponseError(), BAD_RESPONSE),
        (UnknownPaymentError(), OTHER_ERROR),
    ],
)
def test_every_error_code_is_mapped(error, expected: int) -> None:
    assert error.code in ERROR_CODE_MAP
    assert exit_code_for(error.code) == expected


def test_unknown_code_falls_back() -> None:
    assert exit_code_for("SOMETHING_NEW") == OTHER_ERROR
