"""Payment data types.

:class:`PaymentConfig` is what callers hand to
:class:`~payment_sdk.payments.payment.Payment`; :class:`PaymentResponse`
is what a successful submission decodes to.  The wire-facing request
shape lives in :mod:`payment_sdk.network.request`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Union

from payment_sdk.errors import InvalidResponseError

TransactionId = str


class PaymentStatus(enum.Enum):
    """Status reported by the payment service."""

    SUCCESS = "success"


def _to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        # str() first so 10.1 becomes Decimal("10.1"), not the binary expansion.
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid payment amount: {value!r}") from exc


@dataclass(frozen=True)
class PaymentConfig:
    """Parameters for one payment submission.

    Args:
        amount: Amount to charge.  Coerced to :class:`~decimal.Decimal`.
        currency: Currency code (e.g. ``"USD"``, ``"EUR"``).
        recipient: Recipient identifier (user ID, account number).
        retry_count: Extra attempts after the first one fails.
            Defaults to 0 (no retry).
    """

    amount: Decimal
    currency: str
    recipient: str
    retry_count: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _to_decimal(self.amount))

    @property
    def total_attempts(self) -> int:
        """First try plus retries, never less than one."""
        return max(1, self.retry_count + 1)


@dataclass(frozen=True)
class PaymentResponse:
    """Decoded reply of a successful submission."""

    status: PaymentStatus
    transaction_id: TransactionId

    @classmethod
    def from_dict(cls, data: Any) -> "PaymentResponse":
        """Decode the wire shape ``{"status": ..., "transactionId": ...}``.

        Raises:
            InvalidResponseError: If *data* does not have that shape.
        """
        if not isinstance(data, dict):
            raise InvalidResponseError(
                TypeError(f"expected a JSON object, got {type(data).__name__}")
            )
        try:
            status = PaymentStatus(data["status"])
            transaction_id = data["transactionId"]
        except (KeyError, ValueError) as exc:
            raise InvalidResponseError(exc) from exc
        if not isinstance(transaction_id, str):
            raise InvalidResponseError(
                TypeError("transactionId must be a string")
            )
        return cls(status=status, transaction_id=transaction_id)

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "transactionId": self.transaction_id}


@dataclass(frozen=True)
class PaymentResult:
    """Completion value handed to callbacks.

    Exactly one of ``response`` and ``error`` is set.
    """

    response: Optional[PaymentResponse] = None
    error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def unwrap(self) -> PaymentResponse:
        """Return the response, or raise the error this result carries."""
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response


# -- Per-attempt outcomes ----------------------------------------------------
# Produced once per attempt inside the retry loop and consumed immediately.


@dataclass(frozen=True)
class AttemptSuccess:
    response: PaymentResponse
    attempt: int


@dataclass(frozen=True)
class AttemptFailure:
    error: Exception
    attempt: int
    remaining_attempts: int

    @property
    def final(self) -> bool:
        return self.remaining_attempts == 0


AttemptOutcome = Union[AttemptSuccess, AttemptFailure]
