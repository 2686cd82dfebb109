"""
Centralized configuration with environment variable overrides.

Slot granularity, fallback durations and default opening hours are
configurable here. Nothing is hardcoded in the scheduling modules.
"""

import logging
import os
import re
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^(\d{2}):(\d{2})$")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation and duration settings."""

    slot_granularity_minutes: int = _safe_int("SLOT_GRANULARITY_MINUTES", "15")
    default_service_duration_minutes: int = _safe_int("DEFAULT_SERVICE_DURATION_MINUTES", "30")


@dataclass(frozen=True)
class DefaultHoursConfig:
    """Opening hours used when a business has not configured its own."""

    business_open: str = os.getenv("BUSINESS_OPEN", "09:00")
    business_close: str = os.getenv("BUSINESS_CLOSE", "17:00")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    hours: DefaultHoursConfig = field(default_factory=DefaultHoursConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    engine_name: str = os.getenv("ENGINE_NAME", "salon-scheduler")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    granularity = config.scheduling.slot_granularity_minutes
    if not 1 <= granularity <= 1440:
        raise ValueError(
            f"SLOT_GRANULARITY_MINUTES must be between 1 and 1440, got {granularity}"
        )
    if config.scheduling.default_service_duration_minutes < 1:
        raise ValueError(
            "DEFAULT_SERVICE_DURATION_MINUTES must be >= 1, "
            f"got {config.scheduling.default_service_duration_minutes}"
        )

    for name, value in [
        ("BUSINESS_OPEN", config.hours.business_open),
        ("BUSINESS_CLOSE", config.hours.business_close),
    ]:
        match = _HHMM.match(value)
        if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
            raise ValueError(f"{name} must be 'HH:mm', got {value!r}")

    if config.hours.business_close <= config.hours.business_open:
        raise ValueError(
            f"BUSINESS_CLOSE ({config.hours.business_close}) must be after "
            f"BUSINESS_OPEN ({config.hours.business_open})"
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
    logger.info("Configuration loaded for '%s'", config.engine_name)
    return config


# Singleton instance
settings = load_config()
