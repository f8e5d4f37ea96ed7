"""Tests for configuration loading and validation."""

import pytest

from booking_engine.config import (
    AppConfig,
    ContractConfig,
    RealtimeConfig,
    ScheduleConfig,
    _safe_bool,
    _safe_float,
    _safe_int,
    _validate_config,
)


def _config(schedule=None, contracts=None, realtime=None) -> AppConfig:
    return AppConfig(
        schedule=schedule or ScheduleConfig(),
        contracts=contracts or ContractConfig(),
        realtime=realtime or RealtimeConfig(),
    )


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_defaults(self):
        config = AppConfig()
        assert config.schedule.min_gig_duration == 30
        assert config.schedule.min_slot_minutes == 15
        assert config.contracts.allow_accepted_cancellation is False
        assert config.contracts.max_page_size == 500
        assert config.realtime.max_attempts == 10

    def test_invalid_min_slot_minutes(self):
        with pytest.raises(ValueError, match="MIN_SLOT_MINUTES"):
            _validate_config(_config(schedule=ScheduleConfig(min_slot_minutes=0)))

    def test_invalid_min_gig_duration(self):
        with pytest.raises(ValueError, match="MIN_GIG_DURATION"):
            _validate_config(_config(schedule=ScheduleConfig(min_gig_duration=0)))

    def test_min_gig_duration_cannot_drop_below_thirty(self):
        with pytest.raises(ValueError, match="MIN_GIG_DURATION must be >= 30"):
            _validate_config(_config(schedule=ScheduleConfig(min_gig_duration=29)))

    def test_min_gig_duration_can_be_raised(self):
        _validate_config(_config(schedule=ScheduleConfig(min_gig_duration=60)))

    def test_max_page_size_below_page_size(self):
        with pytest.raises(ValueError, match="CONTRACT_MAX_PAGE_SIZE"):
            _validate_config(_config(contracts=ContractConfig(page_size=50, max_page_size=10)))

    def test_max_delay_below_base_delay(self):
        with pytest.raises(ValueError, match="REALTIME_MAX_DELAY"):
            _validate_config(_config(realtime=RealtimeConfig(base_delay_sec=5.0, max_delay_sec=1.0)))

    def test_negative_attempts(self):
        with pytest.raises(ValueError, match="REALTIME_MAX_ATTEMPTS"):
            _validate_config(_config(realtime=RealtimeConfig(max_attempts=-1)))


class TestEnvParsing:
    def test_safe_int_reads_env(self, monkeypatch):
        monkeypatch.setenv("TEST_INT", "42")
        assert _safe_int("TEST_INT", "0") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("TEST_INT", "forty")
        with pytest.raises(ValueError, match="TEST_INT"):
            _safe_int("TEST_INT", "0")

    def test_safe_float_default(self, monkeypatch):
        monkeypatch.delenv("TEST_FLOAT", raising=False)
        assert _safe_float("TEST_FLOAT", "1.5") == 1.5

    @pytest.mark.parametrize("raw, expected", [
        ("true", True), ("YES", True), ("1", True), ("off", False), ("0", False),
    ])
    def test_safe_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("TEST_FLAG", raw)
        assert _safe_bool("TEST_FLAG", "false") is expected

    def test_safe_bool_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("TEST_FLAG", "maybe")
        with pytest.raises(ValueError, match="TEST_FLAG"):
            _safe_bool("TEST_FLAG", "false")
