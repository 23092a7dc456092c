"""Configuration for the payment SDK and its CLI.

Settings are resolved in layers, later layers winning:

    DEFAULTS < ~/.payment-sdk/config.yaml < PAYMENT_SDK_* env vars < arguments

The YAML file never holds the API key; that lives in the encrypted
credential store.  ``load_config`` returns a plain dict that
:meth:`Payment.from_config <payment_sdk.payments.payment.Payment.from_config>`
accepts directly.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Callable

import yaml

from payment_sdk.network.request import Host

DEFAULTS: dict[str, object] = {
    "host": Host.MOCK.value,
    "api_key": "",
    "timeout": 30,
    "retry_delay": 1.0,
}

_ENV_VARS: dict[str, str] = {
    "host": "PAYMENT_SDK_HOST",
    "api_key": "PAYMENT_SDK_API_KEY",
    "timeout": "PAYMENT_SDK_TIMEOUT",
    "retry_delay": "PAYMENT_SDK_RETRY_DELAY",
}

# Keys the config file may set.
_FILE_KEYS = ("host", "timeout", "retry_delay")

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_URL_RE = re.compile(r"^https?://[^\s/]+", re.IGNORECASE)


def get_default_config_path() -> Path:
    return Path.home() / ".payment-sdk" / "config.yaml"


def _normalize_host(host: str) -> str:
    """``api.example.com/`` -> ``https://api.example.com``."""
    host = host.strip()
    if host and _SCHEME_RE.match(host) is None:
        host = f"https://{host}"
    return host.rstrip("/")


def _file_layer(path: Path) -> dict[str, object]:
    # Unreadable or malformed files count as empty.
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) if path.is_file() else None
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(data, dict):
        return {}
    return {k: data[k] for k in _FILE_KEYS if data.get(k) is not None}


def _env_layer() -> dict[str, object]:
    return {key: os.environ[name] for key, name in _ENV_VARS.items() if os.environ.get(name)}


_COERCE: dict[str, Callable[[Any], object]] = {
    "host": lambda v: _normalize_host(str(v)),
    "api_key": str,
    "timeout": float,
    "retry_delay": float,
}


def load_config(
    host: str | None = None,
    api_key: str | None = None,
    config_path: str | None = None,
) -> dict[str, object]:
    """Resolve ``host``, ``api_key``, ``timeout`` and ``retry_delay``.

    ``timeout`` and ``retry_delay`` come back as floats and ``host`` is
    normalized.  A non-numeric value from the environment raises
    :class:`ValueError`.
    """
    path = Path(config_path) if config_path else get_default_config_path()
    explicit = {k: v for k, v in (("host", host), ("api_key", api_key)) if v is not None}

    merged: dict[str, object] = dict(DEFAULTS)
    for layer in (_file_layer(path), _env_layer(), explicit):
        merged.update(layer)
    return {key: _COERCE[key](value) for key, value in merged.items()}


def init_config(host: str, config_path: str | None = None) -> Path:
    """Write a fresh config file for *host* and return its path."""
    path = Path(config_path) if config_path else get_default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    contents = {
        "host": _normalize_host(host),
        "timeout": DEFAULTS["timeout"],
        "retry_delay": DEFAULTS["retry_delay"],
    }
    path.write_text(yaml.safe_dump(contents, sort_keys=False), encoding="utf-8")
    return path


def validate_config(config: dict[str, object]) -> tuple[bool, str | None]:
    """Check a resolved config; returns ``(ok, first_problem)``."""
    host = config.get("host")
    if not host or not isinstance(host, str):
        return False, "host is required"
    if _URL_RE.match(host) is None:
        return False, "host does not appear to be a valid URL"

    timeout = config.get("timeout")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        return False, "timeout must be a positive number"

    delay = config.get("retry_delay")
    if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
        return False, "retry_delay must be zero or more"

    return True, None
