"""Tests for configuration loading and validation."""

from datetime import time

import pytest

from barbershop.config import (
    Settings,
    _optional_time,
    _safe_bool,
    _safe_float,
    validate_settings,
)
from tests.conftest import make_settings


class TestConfigValidation:
    def test_test_settings_pass_validation(self):
        validate_settings(make_settings())  # should not raise

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_lock_timeout_must_be_positive(self, timeout):
        with pytest.raises(ValueError, match="LOCK_TIMEOUT_SECONDS"):
            validate_settings(make_settings(lock_timeout_seconds=timeout))

    def test_negative_min_age(self):
        with pytest.raises(ValueError, match="MIN_BARBER_AGE"):
            validate_settings(make_settings(min_barber_age=-1))

    def test_token_lifetime(self):
        with pytest.raises(ValueError, match="ACCESS_TOKEN_EXPIRE_MINUTES"):
            validate_settings(make_settings(access_token_expire_minutes=0))

    def test_hours_set_together(self):
        with pytest.raises(ValueError, match="set together"):
            validate_settings(make_settings(open_time=time(9)))

    def test_open_before_close(self):
        with pytest.raises(ValueError, match="earlier"):
            validate_settings(make_settings(open_time=time(18), close_time=time(9)))

    def test_manager_credentials_set_together(self):
        with pytest.raises(ValueError, match="MANAGER_EMAIL"):
            validate_settings(make_settings(manager_email="boss@example.com", manager_password=None))

    def test_settings_are_frozen(self):
        config = Settings()
        with pytest.raises(AttributeError):
            config.lock_timeout_seconds = 10


class TestEnvParsing:
    def test_bool_values(self, monkeypatch):
        monkeypatch.setenv("ENFORCE_AVAILABILITY_WINDOWS", "Yes")
        assert _safe_bool("ENFORCE_AVAILABILITY_WINDOWS", "false") is True
        monkeypatch.setenv("ENFORCE_AVAILABILITY_WINDOWS", "off")
        assert _safe_bool("ENFORCE_AVAILABILITY_WINDOWS", "true") is False

    def test_bad_bool(self, monkeypatch):
        monkeypatch.setenv("DATABASE_ECHO", "maybe")
        with pytest.raises(ValueError, match="DATABASE_ECHO"):
            _safe_bool("DATABASE_ECHO", "false")

    def test_bad_float(self, monkeypatch):
        monkeypatch.setenv("LOCK_TIMEOUT_SECONDS", "soon")
        with pytest.raises(ValueError, match="LOCK_TIMEOUT_SECONDS"):
            _safe_float("LOCK_TIMEOUT_SECONDS", "5.0")

    def test_optional_time(self, monkeypatch):
        monkeypatch.delenv("SHOP_OPEN_TIME", raising=False)
        assert _optional_time("SHOP_OPEN_TIME") is None
        monkeypatch.setenv("SHOP_OPEN_TIME", "09:30")
        assert _optional_time("SHOP_OPEN_TIME") == time(9, 30)
        monkeypatch.setenv("SHOP_OPEN_TIME", "half nine")
        with pytest.raises(ValueError, match="SHOP_OPEN_TIME"):
            _optional_time("SHOP_OPEN_TIME")
