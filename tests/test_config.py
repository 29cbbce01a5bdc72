"""Tests for configuration loading and validation."""

import logging

import pytest

from detailing.config import (
    AppConfig,
    DatabaseConfig,
    build_log_handler,
    _safe_bool,
    _safe_float,
    _safe_int,
    _validate_config,
)
from detailing.logging_context import set_request_id


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_unknown_environment(self):
        with pytest.raises(ValueError, match="APP_ENV"):
            _validate_config(AppConfig(environment="staging"))

    def test_empty_database_url(self):
        with pytest.raises(ValueError, match="DATABASE_URL"):
            _validate_config(AppConfig(database=DatabaseConfig(url="")))

    def test_non_positive_busy_timeout(self):
        with pytest.raises(ValueError, match="DB_BUSY_TIMEOUT"):
            _validate_config(AppConfig(database=DatabaseConfig(busy_timeout_sec=0)))

    def test_pool_size_below_one(self):
        with pytest.raises(ValueError, match="DB_POOL_SIZE"):
            _validate_config(AppConfig(database=DatabaseConfig(pool_size=0)))

    def test_config_is_frozen(self):
        config = AppConfig()
        with pytest.raises(AttributeError):
            config.environment = "production"  # type: ignore[misc]


class TestInternalErrorExposure:
    def test_hidden_in_production(self):
        assert AppConfig(environment="production").expose_internal_errors is False

    @pytest.mark.parametrize("environment", ["development", "test"])
    def test_shown_elsewhere(self, environment):
        assert AppConfig(environment=environment).expose_internal_errors is True


class TestEnvParsing:
    def test_safe_int(self, monkeypatch):
        monkeypatch.setenv("TEST_POOL", "7")
        assert _safe_int("TEST_POOL", "5") == 7

    def test_safe_int_invalid(self, monkeypatch):
        monkeypatch.setenv("TEST_POOL", "seven")
        with pytest.raises(ValueError, match="TEST_POOL"):
            _safe_int("TEST_POOL", "5")

    def test_safe_float_default(self, monkeypatch):
        monkeypatch.delenv("TEST_TIMEOUT", raising=False)
        assert _safe_float("TEST_TIMEOUT", "2.5") == 2.5

    def test_safe_float_invalid(self, monkeypatch):
        monkeypatch.setenv("TEST_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="TEST_TIMEOUT"):
            _safe_float("TEST_TIMEOUT", "5")

    @pytest.mark.parametrize("raw, expected", [("true", True), ("1", True), ("Yes", True), ("off", False), ("", False)])
    def test_safe_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("TEST_ECHO", raw)
        assert _safe_bool("TEST_ECHO", "false") is expected


class TestLogHandler:
    def _record(self, name: str) -> logging.LogRecord:
        return logging.LogRecord(name, logging.INFO, __file__, 1, "Booking created", None, None)

    def test_formatted_line_carries_request_id(self):
        set_request_id("REQ-format")
        handler = build_log_handler()
        record = self._record("detailing.scheduling.reservation")
        assert handler.filter(record)
        line = handler.format(record)
        assert "[REQ-format]" in line
        assert "Booking created" in line

    def test_third_party_records_are_formatted_too(self):
        set_request_id("REQ-other")
        handler = build_log_handler()
        record = self._record("sqlalchemy.engine")
        assert handler.filter(record)
        assert "[REQ-other] [sqlalchemy.engine]" in handler.format(record)
