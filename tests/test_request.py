"""Tests for request building and the payment data types."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from payment_sdk.errors import InvalidResponseError, ServerError
from payment_sdk.network.request import (
    Endpoint,
    Host,
    HTTPMethod,
    PaymentRequest,
    RequestBuilder,
    build_request,
)
from payment_sdk.payments.base import (
    AttemptFailure,
    PaymentConfig,
    PaymentResponse,
    PaymentResult,
    PaymentStatus,
)

from .conftest import TEST_API_KEY, TEST_HOST


class TestPaymentConfig:
    def test_amount_coerced_to_decimal(self) -> None:
        assert PaymentConfig(10, "USD", "r1").amount == Decimal("10")
        assert PaymentConfig(10.1, "USD", "r1").amount == Decimal("10.1")
        assert PaymentConfig("0.30", "USD", "r1").amount == Decimal("0.30")

    def test_invalid_amount(self) -> None:
        with pytest.raises(ValueError):
            PaymentConfig("ten", "USD", "r1")

    @pytest.mark.parametrize("retry_count, expected", [(0, 1), (1, 2), (4, 5), (-1, 1), (-10, 1)])
    def test_total_attempts(self, retry_count: int, expected: int) -> None:
        assert PaymentConfig(1, "USD", "r", retry_count=retry_count).total_attempts == expected

    def test_frozen(self) -> None:
        config = PaymentConfig(1, "USD", "r")
        with pytest.raises(AttributeError):
            config.amount = Decimal("2")  # type: ignore[misc]


class TestRequestBuilder:
    def test_build_copies_config_fields(self) -> None:
        request = RequestBuilder(host=TEST_HOST).build(PaymentConfig("25.00", "EUR", "acct-9", retry_count=3))
        assert request.amount == Decimal("25.00")
        assert request.currency == "EUR"
        assert request.recipient == "acct-9"
        assert request.host == TEST_HOST
        assert request.method is HTTPMethod.POST
        assert request.endpoint is Endpoint.PAYMENT

    def test_build_request_uses_mock_host(self) -> None:
        request = build_request(PaymentConfig(1, "USD", "r"))
        assert request.host == Host.MOCK.value
        assert request.is_mock
        assert request.url == "https://mock.api.payment/payment"

    def test_url_strips_trailing_slash(self) -> None:
        request = PaymentRequest(Decimal(1), "USD", "r", host=TEST_HOST + "/")
        assert request.url == f"{TEST_HOST}/payment"
        assert not request.is_mock

    def test_body_keeps_amount_exact(self) -> None:
        request = PaymentRequest(Decimal("0.10"), "USD", "r")
        assert request.body() == {"amount": "0.10", "currency": "USD", "recipient": "r"}
        assert json.loads(request.encode_body()) == request.body()

    def test_headers(self) -> None:
        request = build_request(PaymentConfig(1, "USD", "r"))
        assert request.headers(TEST_API_KEY) == {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {TEST_API_KEY}",
        }
        assert "Authorization" not in request.headers(None)


class TestPaymentResponse:
    def test_from_dict(self) -> None:
        response = PaymentResponse.from_dict({"status": "success", "transactionId": "12345"})
        assert response.status is PaymentStatus.SUCCESS
        assert response.transaction_id == "12345"

    def test_to_dict(self) -> None:
        response = PaymentResponse(PaymentStatus.SUCCESS, "t1")
        assert response.to_dict() == {"status": "success", "transactionId": "t1"}

    @pytest.mark.parametrize(
        "data",
        [
            None,
            "success",
            [],
            {"status": "success"},
            {"transactionId": "1"},
            {"status": "failed", "transactionId": "1"},
            {"status": "success", "transactionId": 12345},
        ],
    )
    def test_invalid_shapes(self, data) -> None:
        with pytest.raises(InvalidResponseError):
            PaymentResponse.from_dict(data)


class TestPaymentResult:
    def test_success(self) -> None:
        response = PaymentResponse(PaymentStatus.SUCCESS, "t1")
        result = PaymentResult(response=response)
        assert result.success
        assert result.unwrap() is response

    def test_failure(self) -> None:
        error = ServerError(500)
        result = PaymentResult(error=error)
        assert not result.success
        with pytest.raises(ServerError):
            result.unwrap()


def test_attempt_failure_final() -> None:
    assert AttemptFailure(ServerError(500), 3, 0).final
    assert not AttemptFailure(ServerError(500), 1, 2).final
