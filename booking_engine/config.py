"""
Centralized configuration with environment variable overrides.

Booking rules, paging limits and realtime channel tuning are all
configurable here. Nothing is hardcoded in scheduling or contract logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Lowest minimum gig duration a schedule may use. MIN_GIG_DURATION can only raise it.
MIN_GIG_DURATION_FLOOR = 30

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag (1/0, true/false, yes/no, on/off)."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class ScheduleConfig:
    """Availability schedule and time window rules."""

    min_gig_duration: int = _safe_int("MIN_GIG_DURATION", "30")
    min_slot_minutes: int = _safe_int("MIN_SLOT_MINUTES", "15")
    max_notes_length: int = _safe_int("MAX_NOTES_LENGTH", "500")
    enforce_overnight_minimum: bool = _safe_bool("ENFORCE_OVERNIGHT_MINIMUM", "true")


@dataclass(frozen=True)
class ContractConfig:
    """Contract lifecycle switches and listing limits."""

    allow_accepted_cancellation: bool = _safe_bool("ALLOW_ACCEPTED_CANCELLATION", "false")
    page_size: int = _safe_int("CONTRACT_PAGE_SIZE", "50")
    max_page_size: int = _safe_int("CONTRACT_MAX_PAGE_SIZE", "500")
    max_details_length: int = _safe_int("MAX_DETAILS_LENGTH", "500")


@dataclass(frozen=True)
class RealtimeConfig:
    """Reconnect policy for the realtime notification channel."""

    base_delay_sec: float = _safe_float("REALTIME_BASE_DELAY", "1.0")
    max_delay_sec: float = _safe_float("REALTIME_MAX_DELAY", "30.0")
    max_attempts: int = _safe_int("REALTIME_MAX_ATTEMPTS", "10")
    ping_interval_sec: float = _safe_float("REALTIME_PING_INTERVAL", "30.0")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    contracts: ContractConfig = field(default_factory=ContractConfig)
    realtime: RealtimeConfig = field(default_factory=RealtimeConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "gig-booking-engine")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.schedule.min_gig_duration < MIN_GIG_DURATION_FLOOR:
        raise ValueError(
            f"MIN_GIG_DURATION must be >= {MIN_GIG_DURATION_FLOOR}, "
            f"got {config.schedule.min_gig_duration}"
        )
    if not 1 <= config.schedule.min_slot_minutes < 24 * 60:
        raise ValueError(
            f"MIN_SLOT_MINUTES must be between 1 and 1439, got {config.schedule.min_slot_minutes}"
        )
    if config.schedule.max_notes_length < 1:
        raise ValueError(
            f"MAX_NOTES_LENGTH must be >= 1, got {config.schedule.max_notes_length}"
        )
    if config.contracts.page_size < 1:
        raise ValueError(
            f"CONTRACT_PAGE_SIZE must be >= 1, got {config.contracts.page_size}"
        )
    if config.contracts.max_page_size < config.contracts.page_size:
        raise ValueError(
            "CONTRACT_MAX_PAGE_SIZE must be >= CONTRACT_PAGE_SIZE, "
            f"got {config.contracts.max_page_size}"
        )
    if config.realtime.base_delay_sec <= 0:
        raise ValueError(
            f"REALTIME_BASE_DELAY must be > 0, got {config.realtime.base_delay_sec}"
        )
    if config.realtime.max_delay_sec < config.realtime.base_delay_sec:
        raise ValueError(
            "REALTIME_MAX_DELAY must be >= REALTIME_BASE_DELAY, "
            f"got {config.realtime.max_delay_sec}"
        )
    if config.realtime.max_attempts < 0:
        raise ValueError(
            f"REALTIME_MAX_ATTEMPTS must be >= 0, got {config.realtime.max_attempts}"
        )
    if config.realtime.ping_interval_sec <= 0:
        raise ValueError(
            f"REALTIME_PING_INTERVAL must be > 0, got {config.realtime.ping_interval_sec}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
