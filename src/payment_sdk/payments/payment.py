"""Payment orchestration: submission with linear retry.

:class:`Payment` owns the retry loop.  One coroutine, :meth:`Payment.make`,
implements it; the other calling conventions are thin adapters over it:

- :meth:`Payment.make` -- ``await`` it, get a response or an exception.
- :meth:`Payment.make_sync` -- blocking wrapper around ``make``.
- :meth:`Payment.make_with_callback` -- runs ``make`` on a worker thread
  and calls the completion exactly once with a :class:`PaymentResult`.
- :meth:`Payment.make_stream` -- single-value async iterable; every
  iteration is an independent submission.

Retry policy: ``config.retry_count + 1`` attempts, a constant pause
between attempts, no pause after the last one.  The request is built
once and replayed unchanged.  The credential is read once per ``make``
call, before the first attempt.

Example::

    payment = Payment(api_key="sk_test_123")
    config = PaymentConfig(amount="10.00", currency="USD", recipient="r1", retry_count=2)
    response = await payment.make(config)
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import AsyncIterator, Awaitable, Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from payment_sdk.credential_store import CredentialStore, get_credential_store
from payment_sdk.errors import MissingAPIKeyError, PaymentError, RequestFailedError
from payment_sdk.network.request import Host, PaymentRequest, RequestBuilder
from payment_sdk.network.transport import HTTPTransport, Transport
from payment_sdk.payments.base import (
    AttemptFailure,
    AttemptOutcome,
    AttemptSuccess,
    PaymentConfig,
    PaymentResponse,
    PaymentResult,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY = 1.0

PaymentCompletion = Callable[[PaymentResult], Any]
Sleep = Callable[[float], Awaitable[Any]]


class CancellationToken:
    """Cancellation signal that can be fired from any thread.

    Passing a token to :meth:`Payment.make` stops the retry loop at the
    next transport call or inter-attempt pause once :meth:`cancel` is
    called; ``make`` then raises :class:`asyncio.CancelledError`.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._lock = threading.Lock()
        self._waiters: List[Tuple[asyncio.AbstractEventLoop, asyncio.Future[None]]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            waiters, self._waiters = self._waiters, []
        for loop, fut in waiters:
            if not loop.is_closed():
                loop.call_soon_threadsafe(_resolve, fut)

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        loop = asyncio.get_running_loop()
        fut: asyncio.Future[None] = loop.create_future()
        with self._lock:
            if self._cancelled:
                return
            entry = (loop, fut)
            self._waiters.append(entry)
        try:
            await fut
        finally:
            with self._lock:
                if entry in self._waiters:
                    self._waiters.remove(entry)


def _resolve(fut: "asyncio.Future[None]") -> None:
    if not fut.done():
        fut.set_result(None)


async def _guarded(awaitable: Awaitable[Any], token: Optional[CancellationToken]) -> Any:
    """Await *awaitable* unless *token* fires first."""
    if token is None:
        return await awaitable
    work = asyncio.ensure_future(awaitable)
    if token.cancelled:
        work.cancel()
        await asyncio.wait({work})
        raise asyncio.CancelledError("payment cancelled")

    stop = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop.cancel()
        if not work.done():
            work.cancel()
            await asyncio.wait({work})
    if work.cancelled():
        raise asyncio.CancelledError("payment cancelled")
    return work.result()


class Payment:
    """Submits payments through a :class:`Transport` with linear retry.

    Args:
        api_key: API key to store before the first submission.  ``None``
            reuses whatever the credential store already holds.
        transport: Network transport.  Defaults to :class:`HTTPTransport`.
        credential_store: Where the API key lives.  Defaults to the
            encrypted on-disk store.
        logger: Logger for progress and failure messages.
        retry_delay: Pause between attempts, in seconds.
        sleep: Coroutine used for the pause.  Defaults to
            :func:`asyncio.sleep`.
        host: Service host every request is sent to.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        transport: Optional[Transport] = None,
        credential_store: Optional[CredentialStore] = None,
        logger: Optional[logging.Logger] = None,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Optional[Sleep] = None,
        host: str = Host.MOCK.value,
    ) -> None:
        if retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {retry_delay}")
        self._owns_transport = transport is None
        self._transport = transport if transport is not None else HTTPTransport()
        self._credential_store = (
            credential_store if credential_store is not None else get_credential_store()
        )
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._builder = RequestBuilder(host=host)
        self._sleep: Sleep = sleep or asyncio.sleep
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self.retry_delay = retry_delay

        if api_key:
            self._credential_store.save(api_key)

    @classmethod
    def from_config(cls, config: Dict[str, Any], **kwargs: Any) -> "Payment":
        """Build an instance from a dict returned by :func:`payment_sdk.config.load_config`."""
        kwargs.setdefault("host", str(config["host"]))
        kwargs.setdefault("retry_delay", float(config["retry_delay"]))  # type: ignore[arg-type]
        owns_transport = "transport" not in kwargs
        if owns_transport:
            kwargs["transport"] = HTTPTransport(timeout=float(config["timeout"]))  # type: ignore[arg-type]
        payment = cls(api_key=str(config.get("api_key") or "") or None, **kwargs)
        payment._owns_transport = owns_transport
        return payment

    @property
    def host(self) -> str:
        return self._builder.host

    # ------------------------------------------------------------------
    # Core operation
    # ------------------------------------------------------------------

    async def make(
        self,
        config: PaymentConfig,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PaymentResponse:
        """Submit a payment, retrying failed attempts.

        Args:
            config: Payment parameters, including the retry count.
            cancel_token: Optional token that aborts the submission.

        Returns:
            The response of the first successful attempt.

        Raises:
            MissingAPIKeyError: If no API key is stored.  No attempt is made.
            asyncio.CancelledError: If the task or *cancel_token* is cancelled.
            Exception: The error of the last attempt once every attempt failed.
        """
        api_key = self._credential_store.load()
        if not api_key:
            self._logger.error(
                "API key is missing. Initialize a new Payment instance with an API key."
            )
            raise MissingAPIKeyError()

        self._logger.info(
            "Payment process started for amount: %s %s", config.amount, config.currency,
        )

        request = self._builder.build(config)
        total_attempts = config.total_attempts
        last_error: Optional[Exception] = None
        attempt = 0

        for attempt in range(1, total_attempts + 1):
            outcome = await self._attempt(request, api_key, attempt, total_attempts, cancel_token)

            if isinstance(outcome, AttemptSuccess):
                self._logger.info(
                    "Payment successful on attempt %d: transaction %s",
                    outcome.attempt, outcome.response.transaction_id,
                )
                return outcome.response

            last_error = outcome.error
            terminal = isinstance(outcome.error, PaymentError) and not outcome.error.retryable
            self._logger.info(
                "Payment failed on attempt %d. Remaining attempts: %d. Error: %s",
                outcome.attempt, 0 if terminal else outcome.remaining_attempts, outcome.error,
            )
            if terminal:
                break
            if not outcome.final:
                await _guarded(self._sleep(self.retry_delay), cancel_token)

        self._logger.error(
            "Payment failed after %d attempts. Error: %s",
            attempt, last_error if last_error is not None else "Unknown error",
        )
        raise last_error if last_error is not None else RequestFailedError()

    async def _attempt(
        self,
        request: PaymentRequest,
        api_key: str,
        attempt: int,
        total_attempts: int,
        cancel_token: Optional[CancellationToken],
    ) -> AttemptOutcome:
        try:
            response = await _guarded(
                self._transport.execute(request, api_key, PaymentResponse),
                cancel_token,
            )
        except Exception as exc:
            return AttemptFailure(exc, attempt, total_attempts - attempt)
        return AttemptSuccess(response, attempt)

    # ------------------------------------------------------------------
    # Calling conventions
    # ------------------------------------------------------------------

    def make_sync(
        self,
        config: PaymentConfig,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PaymentResponse:
        """Blocking variant of :meth:`make`.

        Runs on a private event loop, so it cannot be called from a
        coroutine; ``await make()`` there instead.
        """
        return asyncio.run(self.make(config, cancel_token=cancel_token))

    def make_with_callback(
        self,
        config: PaymentConfig,
        completion: PaymentCompletion,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> "Future[PaymentResult]":
        """Run :meth:`make` on a worker thread and report through *completion*.

        *completion* is called exactly once, from the worker thread, with
        either the response or the error.  The returned future resolves
        to the same :class:`PaymentResult` after *completion* returns.
        """

        def _run() -> PaymentResult:
            try:
                result = PaymentResult(
                    response=asyncio.run(self.make(config, cancel_token=cancel_token))
                )
            except (Exception, asyncio.CancelledError) as exc:
                result = PaymentResult(error=exc)
            completion(result)
            return result

        return self._get_executor().submit(_run)

    def make_stream(
        self,
        config: PaymentConfig,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> "PaymentStream":
        """Return a single-value stream over :meth:`make`."""
        return PaymentStream(self, config, cancel_token=cancel_token)

    # ------------------------------------------------------------------
    # Credential management
    # ------------------------------------------------------------------

    def clear_api_key(self) -> None:
        """Delete the stored API key.

        Submissions fail with :class:`MissingAPIKeyError` until a new
        :class:`Payment` is created with an API key.
        """
        self._credential_store.delete()
        self._logger.info(
            "API key has been cleared. Initialize a new Payment instance before making requests."
        )

    def close(self) -> None:
        """Shut down the callback worker pool, if one was started.

        A transport the instance created itself is closed too; an injected
        one is left to its owner.
        """
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None
        if self._owns_transport:
            self._transport.close()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=4, thread_name_prefix="payment-sdk",
                )
            return self._executor


class PaymentStream:
    """Single-value async stream of a payment submission.

    Each ``async for`` (or :meth:`subscribe`) performs its own full
    submission; nothing is cached between subscribers::

        async for response in payment.make_stream(config):
            print(response.transaction_id)
    """

    def __init__(
        self,
        payment: Payment,
        config: PaymentConfig,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self._payment = payment
        self._config = config
        self._cancel_token = cancel_token

    def __aiter__(self) -> AsyncIterator[PaymentResponse]:
        return self._emit()

    async def _emit(self) -> AsyncIterator[PaymentResponse]:
        yield await self._payment.make(self._config, cancel_token=self._cancel_token)

    async def subscribe(
        self,
        on_value: Callable[[PaymentResponse], Any],
        on_error: Optional[Callable[[BaseException], Any]] = None,
        on_complete: Optional[Callable[[], Any]] = None,
    ) -> None:
        """Run one submission and deliver it to the given callbacks.

        Without *on_error*, the failure is raised to the awaiting caller.
        """
        try:
            response = await self._payment.make(self._config, cancel_token=self._cancel_token)
        except Exception as exc:
            if on_error is None:
                raise
            on_error(exc)
            return
        on_value(response)
        if on_complete is not None:
            on_complete()
