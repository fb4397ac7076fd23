"""Unit tests for log masking, formatters and production settings checks."""
import json
import logging

import pytest

from app.config import Settings
from app.logging_config import JSONFormatter, mask_pii, request_id_ctx


def test_mask_bearer_and_token_values():
    masked = mask_pii('Authorization: Bearer abc.def-123 {"token": "vercel_secret"}')
    assert "abc.def-123" not in masked
    assert "vercel_secret" not in masked
    assert "Bearer ***" in masked


def test_mask_email():
    assert mask_pii("owner jane.doe@example.com") == "owner j***e@example.com"


def test_json_formatter_includes_request_context():
    token = request_id_ctx.set("req-1")
    try:
        record = logging.LogRecord("guestbook.test", logging.INFO, __file__, 1, "added %s", ("x.com",), None)
        entry = json.loads(JSONFormatter().format(record))
    finally:
        request_id_ctx.reset(token)

    assert entry["message"] == "added x.com"
    assert entry["request_id"] == "req-1"
    assert "guestbook_id" not in entry


def test_production_rejects_insecure_secret():
    with pytest.raises(ValueError):
        Settings(APP_ENV="production", SECRET_KEY="change_this", POSTGRES_PASSWORD="strong-password")


def test_production_warns_without_vercel_credentials():
    with pytest.warns(UserWarning):
        Settings(
            APP_ENV="production",
            SECRET_KEY="x" * 48,
            POSTGRES_PASSWORD="strong-password",
            REDIS_URL="redis://localhost:6379/0",
        )


def test_csv_settings_are_split():
    configured = Settings(PLATFORM_PREVIEW_SUFFIXES="vercel.app, Preview.Example.com", PLATFORM_EXTRA_HOSTS="")
    assert configured.platform_preview_suffixes == ["vercel.app", "preview.example.com"]
    assert configured.platform_extra_hosts == []
