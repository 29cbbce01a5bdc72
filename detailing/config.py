"""
Centralized configuration with environment variable overrides.

Deployment-specific values (database location, environment mode, log
level) are read here. Business rules that must stay fixed, such as
opening hours, vehicle multipliers and loyalty thresholds, live as
constants next to the code that applies them.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from detailing.logging_context import RequestIdFilter

load_dotenv()

logger = logging.getLogger(__name__)

VALID_ENVIRONMENTS = ("development", "production", "test")

LOG_FORMAT = "%(asctime)s [%(request_id)s] [%(name)s] %(levelname)s: %(message)s"


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
    return os.getenv(env_var, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class BusinessConfig:
    """Business-facing labels loaded from environment or defaults."""

    name: str = os.getenv("BUSINESS_NAME", "Auto Bath Detailing")
    timezone: str = os.getenv("BUSINESS_TIMEZONE", "Asia/Kuala_Lumpur")
    contact_email: str = os.getenv("BUSINESS_CONTACT_EMAIL", "bookings@autobath.example")


@dataclass(frozen=True)
class DatabaseConfig:
    """Relational store settings."""

    url: str = os.getenv("DATABASE_URL", "sqlite:///./detailing.sqlite")
    echo: bool = _safe_bool("DB_ECHO", "false")
    busy_timeout_sec: float = _safe_float("DB_BUSY_TIMEOUT", "5.0")
    pool_size: int = _safe_int("DB_POOL_SIZE", "5")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    environment: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def expose_internal_errors(self) -> bool:
        """Internal storage detail is only surfaced outside production."""
        return self.environment != "production"


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.environment not in VALID_ENVIRONMENTS:
        raise ValueError(
            f"APP_ENV must be one of {', '.join(VALID_ENVIRONMENTS)}, got {config.environment!r}"
        )
    if not config.database.url:
        raise ValueError("DATABASE_URL must not be empty")
    if config.database.busy_timeout_sec <= 0:
        raise ValueError(
            f"DB_BUSY_TIMEOUT must be > 0, got {config.database.busy_timeout_sec}"
        )
    if config.database.pool_size < 1:
        raise ValueError(
            f"DB_POOL_SIZE must be >= 1, got {config.database.pool_size}"
        )


def build_log_handler() -> logging.Handler:
    """Stream handler whose records always carry the current request id."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(RequestIdFilter())
    return handler


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[build_log_handler()],
    )
    logger.info("Configuration loaded for '%s' (%s)", config.business.name, config.environment)
    return config


# Singleton instance
settings = load_config()
