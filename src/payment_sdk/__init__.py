"""payment-sdk - client-side payment submission with retry."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from payment_sdk.errors import (
    InvalidResponseError,
    MissingAPIKeyError,
    NetworkError,
    PaymentError,
    RequestFailedError,
    ServerError,
    UnknownPaymentError,
)
from payment_sdk.payments import (
    CancellationToken,
    Payment,
    PaymentConfig,
    PaymentResponse,
    PaymentResult,
    PaymentStatus,
    PaymentStream,
)

try:
    __version__ = version("payment-sdk")
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0"

__all__ = [
    "CancellationToken",
    "InvalidResponseError",
    "MissingAPIKeyError",
    "NetworkError",
    "Payment",
    "PaymentConfig",
    "PaymentError",
    "PaymentResponse",
    "PaymentResult",
    "PaymentStatus",
    "PaymentStream",
    "RequestFailedError",
    "ServerError",
    "UnknownPaymentError",
    "__version__",
]
