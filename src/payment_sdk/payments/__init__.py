"""Payment submission for the payment SDK.

Public API::

    from payment_sdk.payments import (
        Payment,
        PaymentConfig,
        PaymentResponse,
        PaymentResult,
        PaymentStatus,
    )
"""

from payment_sdk.payments.base import (
    PaymentConfig,
    PaymentResponse,
    PaymentResult,
    PaymentStatus,
)
from payment_sdk.payments.payment import CancellationToken, Payment, PaymentStream

__all__ = [
    "CancellationToken",
    "Payment",
    "PaymentConfig",
    "PaymentResponse",
    "PaymentResult",
    "PaymentStatus",
    "PaymentStream",
]
