"""Shared fixtures for the payment-sdk test suite."""

from __future__ import annotations

from typing import List, Optional

import pytest

from payment_sdk.credential_store import CredentialStore
from payment_sdk.network.transport import MockTransport
from payment_sdk.payments.base import PaymentConfig
from payment_sdk.payments.payment import Payment


# ---------------------------------------------------------------------------
# Constants reused across tests
# ---------------------------------------------------------------------------

TEST_API_KEY = "sk_test_1234567890"
TEST_HOST = "https://api.payments.test"
SUCCESS_BODY = {"status": "success", "transactionId": "12345"}


# ---------------------------------------------------------------------------
# Doubles
# ---------------------------------------------------------------------------


class MemoryCredentialStore(CredentialStore):
    """Keeps the credential in memory."""

    def __init__(self, value: Optional[str] = None) -> None:
        self.value = value

    def save(self, value: str) -> None:
        self.value = value

    def load(self) -> Optional[str]:
        return self.value

    def delete(self) -> None:
        self.value = None


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that returns immediately."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)

    @property
    def count(self) -> int:
        return len(self.delays)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def config() -> PaymentConfig:
    return PaymentConfig(amount=10, currency="USD", recipient="r1")


@pytest.fixture()
def make_payment(store: MemoryCredentialStore, sleep: RecordingSleep):
    """Factory building a Payment wired to in-memory doubles."""

    def _make(transport: MockTransport, api_key: Optional[str] = TEST_API_KEY, **kwargs) -> Payment:
        return Payment(
            api_key,
            transport=transport,
            credential_store=kwargs.pop("credential_store", store),
            sleep=kwargs.pop("sleep", sleep),
            **kwargs,
        )

    return _make
