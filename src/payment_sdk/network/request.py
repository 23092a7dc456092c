"""Request descriptors for the payment service.

:class:`RequestBuilder` maps a :class:`~payment_sdk.payments.base.PaymentConfig`
onto a transport-ready :class:`PaymentRequest`.  Method, endpoint and host
are fixed when the builder is created; individual calls cannot reroute.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from payment_sdk.payments.base import PaymentConfig


class Host(enum.Enum):
    """Known service hosts."""

    # Requests against this host never touch the network.
    MOCK = "https://mock.api.payment"


class HTTPMethod(enum.Enum):
    GET = "GET"
    POST = "POST"


class Endpoint(enum.Enum):
    PAYMENT = "payment"


@dataclass(frozen=True)
class PaymentRequest:
    """Wire-facing shape of a payment submission.

    Derived 1:1 from :class:`PaymentConfig`; the retry count stays on the
    config because the service never sees it.
    """

    amount: Decimal
    currency: str
    recipient: str
    host: str = Host.MOCK.value
    method: HTTPMethod = HTTPMethod.POST
    endpoint: Endpoint = Endpoint.PAYMENT

    @property
    def url(self) -> str:
        return f"{self.host.rstrip('/')}/{self.endpoint.value}"

    @property
    def is_mock(self) -> bool:
        return self.host == Host.MOCK.value

    def body(self) -> Dict[str, Any]:
        # Decimal amounts go over the wire as strings to keep them exact.
        return {
            "amount": str(self.amount),
            "currency": self.currency,
            "recipient": self.recipient,
        }

    def encode_body(self) -> bytes:
        return json.dumps(self.body()).encode("utf-8")

    def headers(self, api_key: Optional[str]) -> Dict[str, str]:
        """Build request headers, authenticated when *api_key* is given."""
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers


@dataclass(frozen=True)
class RequestBuilder:
    """Builds :class:`PaymentRequest` objects for one fixed host."""

    host: str = field(default=Host.MOCK.value)

    def build(self, config: PaymentConfig) -> PaymentRequest:
        return PaymentRequest(
            amount=config.amount,
            currency=config.currency,
            recipient=config.recipient,
            host=self.host,
        )


def build_request(config: PaymentConfig) -> PaymentRequest:
    """Build a request for the default (mock) host."""
    return RequestBuilder().build(config)
