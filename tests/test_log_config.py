"""Tests for payment_sdk.log_config -- log rotation and scrubbing."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

import pytest

from payment_sdk.log_config import ScrubFilter, _scrub, configure_logging


@pytest.fixture
def clean_root_logger():
    """Restore root logger handlers and level after the test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    for handler in handlers:
        for f in [f for f in handler.filters if isinstance(f, ScrubFilter)]:
            handler.removeFilter(f)


class TestScrubFilter:
    """Tests for the ScrubFilter logging filter."""

    def test_redacts_api_key_equals(self):
        result = _scrub("api_key=sk_live_abc123 foo")
        assert "sk_live_abc123" not in result
        assert "***REDACTED***" in result

    def test_redacts_apikey_json(self):
        result = _scrub('{"apiKey": "sk_test_999"}')
        assert "sk_test_999" not in result

    def test_redacts_bearer_header(self):
        result = _scrub("Authorization: Bearer sk_live_bearer")
        assert "sk_live_bearer" not in result
        assert "***REDACTED***" in result

    def test_redacts_bearer_in_header_dict(self):
        result = _scrub("{'Authorization': 'Bearer sk_live_dict'}")
        assert "sk_live_dict" not in result

    def test_redacts_password_and_secret(self):
        assert "hunter2" not in _scrub("password=hunter2")
        assert "whsec_abc" not in _scrub("secret=whsec_abc")
        assert "tok_live" not in _scrub("token=tok_live")

    def test_preserves_payment_messages(self):
        msg = "Payment failed on attempt 1. Remaining attempts: 2. Error: boom"
        assert _scrub(msg) == msg
        msg = "API key is missing. Initialize a new Payment instance with an API key."
        assert _scrub(msg) == msg

    def test_filter_modifies_log_record(self):
        f = ScrubFilter()
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="api_key=secret123", args=(), exc_info=None,
        )
        assert f.filter(record) is True
        assert "secret123" not in record.msg

    def test_filter_scrubs_tuple_args(self):
        f = ScrubFilter()
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="sending %s", args=("api_key=sk_arg",), exc_info=None,
        )
        f.filter(record)
        assert "sk_arg" not in record.getMessage()


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_creates_log_file(self, tmp_path, clean_root_logger):
        log_dir = str(tmp_path / "logs")
        path = configure_logging(log_dir)
        assert path == os.path.join(log_dir, "payment-sdk.log")
        logging.getLogger("payment_sdk.test").info("hello api_key=sk_file")
        for handler in clean_root_logger.handlers:
            handler.flush()
        content = open(path).read()
        assert "hello" in content
        assert "sk_file" not in content

    def test_env_dir_and_level(self, tmp_path, monkeypatch, clean_root_logger):
        monkeypatch.setenv("PAYMENT_SDK_LOG_DIR", str(tmp_path / "envlogs"))
        monkeypatch.setenv("PAYMENT_SDK_LOG_LEVEL", "debug")
        path = configure_logging()
        assert path.startswith(str(tmp_path / "envlogs"))
        assert clean_root_logger.level == logging.DEBUG

    def test_idempotent(self, tmp_path, clean_root_logger):
        configure_logging(str(tmp_path))
        configure_logging(str(tmp_path))
        rotating = [h for h in clean_root_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(rotating) == 1
        assert rotating[0].maxBytes == 5_000_000
        assert rotating[0].backupCount == 3
        scrubbers = [f for f in rotating[0].filters if isinstance(f, ScrubFilter)]
        assert len(scrubbers) == 1
