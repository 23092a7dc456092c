"""Network transports for payment submission.

A :class:`Transport` performs exactly one exchange with the payment
service and decodes the reply.  It never retries; retrying is the job of
:class:`~payment_sdk.payments.payment.Payment`.

Failures are classified here so the orchestrator sees the SDK taxonomy:

- ``requests`` connectivity errors -> :class:`NetworkError`
- status outside 2xx -> :class:`ServerError`
- undecodable body -> :class:`InvalidResponseError`
- anything else -> :class:`UnknownPaymentError`

:class:`MockTransport` replaces the network with a scripted or seeded
sequence of outcomes.  :class:`HTTPTransport` routes requests for
:attr:`Host.MOCK <payment_sdk.network.request.Host.MOCK>` to one.
"""

from __future__ import annotations

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Type, TypeVar, Union

import requests
from requests.exceptions import RequestException

from payment_sdk.errors import (
    InvalidResponseError,
    MissingAPIKeyError,
    NetworkError,
    PaymentError,
    ServerError,
    UnknownPaymentError,
)
from payment_sdk.network.request import PaymentRequest
from payment_sdk.payments.base import PaymentResponse

logger = logging.getLogger(__name__)


class Decodable(Protocol):
    @classmethod
    def from_dict(cls, data: Any) -> Any: ...


ResponseT = TypeVar("ResponseT", bound=Decodable)

_MOCK_BODY: Dict[str, Any] = {"status": "success", "transactionId": "abc123"}

# Scripted mock outcome: "success", a reply body, or an exception to raise.
MockOutcome = Union[str, Dict[str, Any], BaseException]


class Transport(ABC):
    """Executes one request against the payment service."""

    @abstractmethod
    async def execute(
        self,
        request: PaymentRequest,
        api_key: Optional[str],
        response_type: Type[ResponseT] = PaymentResponse,  # type: ignore[assignment]
    ) -> ResponseT:
        """Send *request* and decode the reply into *response_type*.

        Args:
            request: The request descriptor.
            api_key: Credential sent as a bearer token.

        Returns:
            The decoded response.

        Raises:
            MissingAPIKeyError: If *api_key* is empty.  Raised before any
                exchange is attempted.
            PaymentError: Classified transport failure.
        """

    def close(self) -> None:
        """Release connections held by the transport.  No-op by default."""


class MockTransport(Transport):
    """Deterministic stand-in for the network.

    Args:
        outcomes: Scripted outcomes consumed one per call.  Each entry is
            ``"success"`` (canned body), a reply ``dict`` or an exception
            instance to raise.  Once the script runs out its last entry
            repeats.
        failure_rate: Probability of a synthetic network failure per call
            when no script is given.
        seed: Seed for the failure draw.
        response_body: Canned success body.  Defaults to
            ``{"status": "success", "transactionId": "abc123"}``.
    """

    def __init__(
        self,
        outcomes: Optional[Sequence[MockOutcome]] = None,
        *,
        failure_rate: float = 0.0,
        seed: Optional[int] = None,
        response_body: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError(f"failure_rate must be within [0, 1], got {failure_rate}")
        self._outcomes: List[MockOutcome] = list(outcomes or [])
        self._failure_rate = failure_rate
        self._random = random.Random(seed)
        self._body = dict(response_body or _MOCK_BODY)
        self.calls: List[Tuple[PaymentRequest, Optional[str]]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def _next_outcome(self) -> MockOutcome:
        if self._outcomes:
            index = min(len(self.calls) - 1, len(self._outcomes) - 1)
            return self._outcomes[index]
        if self._random.random() < self._failure_rate:
            return NetworkError(ConnectionError("bad server response"))
        return "success"

    async def execute(
        self,
        request: PaymentRequest,
        api_key: Optional[str],
        response_type: Type[ResponseT] = PaymentResponse,  # type: ignore[assignment]
    ) -> ResponseT:
        if not api_key:
            raise MissingAPIKeyError()
        self.calls.append((request, api_key))
        await asyncio.sleep(0)

        outcome = self._next_outcome()
        if isinstance(outcome, BaseException):
            logger.debug("Mock transport failing call %d: %s", len(self.calls), outcome)
            raise outcome
        body = self._body if outcome == "success" else outcome
        return response_type.from_dict(dict(body))  # type: ignore[arg-type]


class HTTPTransport(Transport):
    """Transport backed by a :class:`requests.Session`.

    The blocking request runs in a worker thread so the event loop stays
    free while waiting on the network.

    Args:
        timeout: Request timeout in seconds.  Defaults to 30.
        session: Session to reuse.  A new one is created if omitted.
        mock: Transport used for requests addressed to the mock host.
            Defaults to a :class:`MockTransport` that fails half the time.
    """

    def __init__(
        self,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
        mock: Optional[Transport] = None,
    ) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()
        self._mock = mock if mock is not None else MockTransport(failure_rate=0.5)

    def close(self) -> None:
        self._session.close()

    def _perform(
        self,
        request: PaymentRequest,
        api_key: str,
        response_type: Type[ResponseT],
    ) -> ResponseT:
        try:
            response = self._session.request(
                request.method.value,
                request.url,
                data=request.encode_body(),
                headers=request.headers(api_key),
                timeout=self.timeout,
                allow_redirects=False,
            )
        except RequestException as exc:
            raise NetworkError(exc) from exc

        logger.debug(
            "%s %s -> HTTP %d", request.method.value, request.url, response.status_code,
        )
        if not 200 <= response.status_code < 300:
            raise ServerError(response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError(exc) from exc
        return response_type.from_dict(data)  # type: ignore[return-value]

    async def execute(
        self,
        request: PaymentRequest,
        api_key: Optional[str],
        response_type: Type[ResponseT] = PaymentResponse,  # type: ignore[assignment]
    ) -> ResponseT:
        if not api_key:
            raise MissingAPIKeyError()
        if request.is_mock:
            return await self._mock.execute(request, api_key, response_type)

        try:
            return await asyncio.to_thread(self._perform, request, api_key, response_type)
        except PaymentError:
            raise
        except Exception as exc:
            raise UnknownPaymentError(exc) from exc
