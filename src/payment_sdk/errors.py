"""Error taxonomy for payment submission.

Every failure the SDK surfaces derives from :class:`PaymentError` and
carries a machine-readable ``code`` so callers (and the CLI exit-code
mapping) can branch without parsing messages.

Only :class:`MissingAPIKeyError` is terminal.  Everything else the
transport raises is retried by :class:`~payment_sdk.payments.payment.Payment`
up to the configured limit.
"""

from __future__ import annotations

from typing import Optional


class PaymentError(Exception):
    """Base exception for payment-related errors."""

    default_message = "The payment request failed."
    default_code = "PAYMENT_ERROR"
    retryable = True

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        self.code = code or self.default_code

    @property
    def message(self) -> str:
        return str(self)


class MissingAPIKeyError(PaymentError):
    """No credential is stored, or the stored one is empty."""

    default_message = "Missing API key. Please set your API key before making a request."
    default_code = "MISSING_API_KEY"
    retryable = False


class NetworkError(PaymentError):
    """The exchange never produced a response (refused, reset, timed out)."""

    default_code = "NETWORK_ERROR"

    def __init__(
        self,
        cause: BaseException,
        *,
        message: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(
            message
            or f"A network error occurred: {cause}. Please check your connection.",
            code=code,
        )
        self.cause = cause


class ServerError(PaymentError):
    """The service replied with a status outside the 2xx band."""

    default_code = "SERVER_ERROR"

    def __init__(
        self,
        status_code: int,
        *,
        message: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(
            message
            or f"Server error occurred with status code {status_code}. Please try again later.",
            code=code,
        )
        self.status_code = status_code


class InvalidResponseError(PaymentError):
    """The reply body could not be decoded into the expected shape."""

    default_code = "INVALID_RESPONSE"

    def __init__(
        self,
        cause: Optional[BaseException] = None,
        *,
        message: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        if message is None:
            message = "The server response was invalid."
            if cause is not None:
                message = f"The server response was invalid. Details: {cause}"
        super().__init__(message, code=code)
        self.cause = cause


class RequestFailedError(PaymentError):
    """Generic failure used when no specific cause is available."""

    default_message = "The payment request failed. Please try again."
    default_code = "REQUEST_FAILED"


class UnknownPaymentError(PaymentError):
    """Catch-all for transport failures that fit no other category."""

    default_message = "An unknown error occurred. Please contact support."
    default_code = "UNKNOWN"

    def __init__(
        self,
        cause: Optional[BaseException] = None,
        *,
        message: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code)
        self.cause = cause


__all__ = [
    "InvalidResponseError",
    "MissingAPIKeyError",
    "NetworkError",
    "PaymentError",
    "RequestFailedError",
    "ServerError",
    "UnknownPaymentError",
]
