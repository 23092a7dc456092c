"""API key storage for the payment SDK.

:class:`CredentialStore` is the contract :class:`~payment_sdk.payments.payment.Payment`
relies on.  ``save`` overwrites, ``load`` returns ``None`` when nothing is
stored, and ``delete`` on an empty store does nothing.

:class:`EncryptedCredentialStore` keeps the key in a small SQLite file,
encrypted with AES-GCM under a key derived (PBKDF2-HMAC-SHA256, fresh
salt per write) from a master secret.  The master secret comes from the
``master_key`` argument, the ``PAYMENT_SDK_MASTER_KEY`` variable, or a
file generated on first use at ``~/.payment-sdk/master.key``.

Example::

    store = get_credential_store()
    store.save("sk_live_abc123")
    assert store.load() == "sk_live_abc123"
    store.delete()
"""

from __future__ import annotations

import hashlib
import logging
import os
import secrets
import sqlite3
import sys
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "com.paymentsdk"
DEFAULT_ACCOUNT = "apiKey"

_KDF_ROUNDS = 100_000
_SALT_BYTES = 16
_NONCE_BYTES = 12
_TAG_BYTES = 16

_STATE_DIR = Path.home() / ".payment-sdk"
_DEFAULT_DB_PATH = str(_STATE_DIR / "credentials.db")
_DEFAULT_MASTER_KEY_PATH = str(_STATE_DIR / "master.key")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS credentials (
    service     TEXT NOT NULL,
    account     TEXT NOT NULL,
    payload     BLOB NOT NULL,
    updated_at  REAL NOT NULL,
    PRIMARY KEY (service, account)
)
"""


class CredentialStoreError(Exception):
    """A stored credential exists but cannot be decrypted."""


class CredentialStore(ABC):
    """Holds at most one credential string; last write wins."""

    @abstractmethod
    def save(self, value: str) -> None:
        """Store *value*, replacing any existing credential."""

    @abstractmethod
    def load(self) -> Optional[str]:
        """Return the stored credential, or ``None`` if there is none."""

    @abstractmethod
    def delete(self) -> None:
        """Remove the stored credential.  No-op when nothing is stored."""


def _restrict(path: str) -> None:
    """chmod 600, where the platform has POSIX modes."""
    if sys.platform == "win32":
        return
    try:
        os.chmod(path, 0o600)
    except OSError as exc:
        logger.warning("Could not restrict permissions on %s: %s", path, exc)


def _master_key_from_file(path: str) -> str:
    key_file = Path(path)
    if key_file.is_file():
        existing = key_file.read_text(encoding="utf-8").strip()
        if existing:
            return existing

    key_file.parent.mkdir(parents=True, exist_ok=True)
    generated = secrets.token_urlsafe(48)
    key_file.write_text(generated, encoding="utf-8")
    _restrict(path)
    logger.warning(
        "Auto-generated a master key at %s. Without this file the stored "
        "API key cannot be decrypted.",
        path,
    )
    return generated


def resolve_master_key(explicit: Optional[str] = None) -> str:
    """Pick the master secret: argument, then env var, then key file."""
    return (
        explicit
        or os.environ.get("PAYMENT_SDK_MASTER_KEY")
        or _master_key_from_file(_DEFAULT_MASTER_KEY_PATH)
    )


class EncryptedCredentialStore(CredentialStore):
    """SQLite-backed store with one encrypted row per ``(service, account)``.

    :param service: Service half of the storage key.
    :param account: Account half of the storage key.
    :param master_key: Secret the encryption key is derived from.  See
        :func:`resolve_master_key` for the fallbacks.
    :param db_path: Database file.  Defaults to
        ``PAYMENT_SDK_CREDENTIAL_DB_PATH`` or ``~/.payment-sdk/credentials.db``.

    The payload column holds ``salt || nonce || ciphertext+tag``.
    """

    def __init__(
        self,
        service: str = DEFAULT_SERVICE,
        account: str = DEFAULT_ACCOUNT,
        *,
        master_key: Optional[str] = None,
        db_path: Optional[str] = None,
    ) -> None:
        self.service = service
        self.account = account
        self.db_path = (
            db_path
            or os.environ.get("PAYMENT_SDK_CREDENTIAL_DB_PATH")
            or _DEFAULT_DB_PATH
        )
        self._secret = resolve_master_key(master_key).encode("utf-8")
        self._lock = threading.Lock()

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=5.0)
        with self._conn:
            self._conn.execute(_SCHEMA)
        _restrict(self.db_path)

    # -- crypto ---------------------------------------------------------

    def _cipher(self, salt: bytes) -> AESGCM:
        key = hashlib.pbkdf2_hmac("sha256", self._secret, salt, _KDF_ROUNDS, dklen=32)
        return AESGCM(key)

    def _seal(self, value: str) -> bytes:
        salt = os.urandom(_SALT_BYTES)
        nonce = os.urandom(_NONCE_BYTES)
        return salt + nonce + self._cipher(salt).encrypt(nonce, value.encode("utf-8"), None)

    def _open(self, payload: bytes) -> str:
        header = _SALT_BYTES + _NONCE_BYTES
        if len(payload) < header + _TAG_BYTES:
            raise CredentialStoreError("Stored credential is malformed")
        salt, nonce, sealed = payload[:_SALT_BYTES], payload[_SALT_BYTES:header], payload[header:]
        try:
            return self._cipher(salt).decrypt(nonce, sealed, None).decode("utf-8")
        except InvalidTag as exc:
            raise CredentialStoreError(
                "Stored credential could not be decrypted (wrong master key or corrupted data)"
            ) from exc
        except UnicodeDecodeError as exc:
            raise CredentialStoreError("Stored credential is not valid UTF-8") from exc

    # -- CredentialStore ------------------------------------------------

    def save(self, value: str) -> None:
        payload = self._seal(value)
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO credentials (service, account, payload, updated_at) "
                "VALUES (?, ?, ?, ?) "
                "ON CONFLICT (service, account) DO UPDATE SET "
                "payload = excluded.payload, updated_at = excluded.updated_at",
                (self.service, self.account, payload, time.time()),
            )

    def load(self) -> Optional[str]:
        """Return the decrypted credential, or ``None`` if absent.

        :raises CredentialStoreError: If the stored row cannot be decrypted.
        """
        with self._lock:
            row = self._conn.execute(
                "SELECT payload FROM credentials WHERE service = ? AND account = ?",
                (self.service, self.account),
            ).fetchone()
        return None if row is None else self._open(bytes(row[0]))

    def delete(self) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "DELETE FROM credentials WHERE service = ? AND account = ?",
                (self.service, self.account),
            )

    def close(self) -> None:
        self._conn.close()


_store: Optional[EncryptedCredentialStore] = None
_store_lock = threading.Lock()


def get_credential_store() -> EncryptedCredentialStore:
    """Return the process-wide store, creating it on first use."""
    global _store
    with _store_lock:
        if _store is None:
            _store = EncryptedCredentialStore()
        return _store
