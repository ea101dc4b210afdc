"""Tests for logging configuration and redaction."""

import logging

from earmark.core import logging as earmark_logging
from earmark.core.logging import redact_sensitive_data, redact_string, setup_logging

BCRYPT_HASH = "$2b$12$" + "a" * 53


def test_redacts_sensitive_keys():
    event = {
        "event": "login",
        "password": "hunter2",
        "PASSWORD_HASH": BCRYPT_HASH,
        "session_cookie": "abc",
        "ip": "10.0.0.1",
    }

    redacted = redact_sensitive_data(None, "info", event)

    assert redacted["password"] == "***REDACTED***"
    assert redacted["PASSWORD_HASH"] == "***REDACTED***"
    assert redacted["session_cookie"] == "***REDACTED***"
    assert redacted["ip"] == "10.0.0.1"
    assert redacted["event"] == "login"
    # The input is left untouched
    assert event["password"] == "hunter2"


def test_redacts_bcrypt_hash_in_free_text():
    message = f"configured hash {BCRYPT_HASH} is invalid"
    assert redact_string(message) == "configured hash ***REDACTED*** is invalid"


def test_production_logging_installs_json_handler(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    monkeypatch.setattr(earmark_logging.settings, "APP_ENV", "production")
    monkeypatch.setattr(earmark_logging.settings, "DEBUG", False)
    try:
        setup_logging()
        assert len(root.handlers) == 1
        assert type(root.handlers[0].formatter).__name__ == "ProcessorFormatter"
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
