# tests/test_logging_config.py
"""
Tests for the structured logging configuration.
"""

import json
import logging

from ops.logging_config import APP_LOGGERS, JsonFormatter, TenantContextFilter, get_logging_config
from tenant.context import tenant_context


def _record(msg="Journal entry posted", **extra):
    record = logging.LogRecord(
        name="accounting.commands",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestGetLoggingConfig:

    def test_json_format_by_default(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = get_logging_config(debug=False)

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["loggers"][""]["level"] == "INFO"
        for name in APP_LOGGERS:
            assert config["loggers"][name]["propagate"] is False

    def test_console_format_in_debug(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = get_logging_config(debug=True)

        assert config["handlers"]["console"]["formatter"] == "verbose"
        assert config["loggers"]["accounting"]["level"] == "DEBUG"


class TestTenantContextFilter:

    def test_stamps_active_tenant(self):
        record = _record()

        with tenant_context(42):
            TenantContextFilter().filter(record)

        assert record.tenant_id == 42

    def test_explicit_tenant_is_kept(self):
        record = _record(tenant_id=7)

        with tenant_context(42):
            TenantContextFilter().filter(record)

        assert record.tenant_id == 7


class TestJsonFormatter:

    def test_formats_json_line(self):
        record = _record(tenant_id=3, entry_number="CE-00001")

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "accounting.commands"
        assert payload["message"] == "Journal entry posted"
        assert payload["tenant_id"] == 3
        assert payload["extra"] == {"entry_number": "CE-00001"}
