import json
import logging

import pytest
from pydantic import ValidationError

from gallery_admin.config import Settings, get_settings, reset_settings_cache
from gallery_admin.core.logging import setup_logging


def test_blank_sentry_dsn_disables_sentry():
    assert Settings(SENTRY_DSN="   ").SENTRY_DSN is None
    assert Settings(SENTRY_DSN=" https://key@sentry.example.com/1 ").SENTRY_DSN == "https://key@sentry.example.com/1"


def test_session_ttl_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(SESSION_TTL_HOURS=0)


def test_settings_cache_reset(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    reset_settings_cache()
    try:
        assert get_settings().LOG_LEVEL == "DEBUG"
    finally:
        monkeypatch.undo()
        reset_settings_cache()


def test_setup_logging_emits_json_with_extra_fields():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

        record = logging.LogRecord("gallery_admin.test", logging.WARNING, __file__, 1, "Suspicious activity detected", None, None)
        record.actor_id = 7
        payload = json.loads(root.handlers[0].format(record))

        assert payload["levelname"] == "WARNING"
        assert payload["name"] == "gallery_admin.test"
        assert payload["message"] == "Suspicious activity detected"
        assert payload["actor_id"] == 7
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
