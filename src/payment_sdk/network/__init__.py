"""Request descriptors and transports."""

from payment_sdk.network.request import (
    Endpoint,
    Host,
    HTTPMethod,
    PaymentRequest,
    RequestBuilder,
    build_request,
)
from payment_sdk.network.transport import HTTPTransport, MockTransport, Transport

__all__ = [
    "Endpoint",
    "HTTPMethod",
    "HTTPTransport",
    "Host",
    "MockTransport",
    "PaymentRequest",
    "RequestBuilder",
    "Transport",
    "build_request",
]
