# barbershop/config.py
"""
Settings for the booking service, read from the environment (and a local
.env file) with defaults suited to a single-node SQLite deployment.
"""

import logging
import os
from dataclasses import dataclass
from datetime import time
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid integer for {env_var}: {raw!r}") from None


def _safe_float(env_var: str, default: str) -> float:
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid float for {env_var}: {raw!r}") from None


def _safe_bool(env_var: str, default: str) -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


def _optional_time(env_var: str) -> Optional[time]:
    """Parse an ``HH:MM`` value; unset or empty means no limit."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return None
    try:
        return time.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"Invalid time for {env_var}: {raw!r} (expected HH:MM)") from None


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./barber.db")
    database_echo: bool = _safe_bool("DATABASE_ECHO", "false")

    secret_key: str = os.getenv("SECRET_KEY", "change-me-later")
    algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = _safe_int("ACCESS_TOKEN_EXPIRE_MINUTES", "30")
    manager_email: Optional[str] = os.getenv("MANAGER_EMAIL") or None
    manager_password: Optional[str] = os.getenv("MANAGER_PASSWORD") or None

    # Bounded wait for the per-barber and chief-role locks.
    lock_timeout_seconds: float = _safe_float("LOCK_TIMEOUT_SECONDS", "5.0")
    min_barber_age: int = _safe_int("MIN_BARBER_AGE", "21")
    enforce_availability_windows: bool = _safe_bool("ENFORCE_AVAILABILITY_WINDOWS", "false")
    open_time: Optional[time] = _optional_time("SHOP_OPEN_TIME")
    close_time: Optional[time] = _optional_time("SHOP_CLOSE_TIME")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def validate_settings(config: Settings) -> None:
    """Raise ``ValueError`` for values outside their accepted ranges."""
    if config.lock_timeout_seconds <= 0:
        raise ValueError(
            f"LOCK_TIMEOUT_SECONDS must be > 0, got {config.lock_timeout_seconds}"
        )
    if config.min_barber_age < 0:
        raise ValueError(f"MIN_BARBER_AGE must be >= 0, got {config.min_barber_age}")
    if config.access_token_expire_minutes < 1:
        raise ValueError(
            "ACCESS_TOKEN_EXPIRE_MINUTES must be >= 1, "
            f"got {config.access_token_expire_minutes}"
        )
    if (config.open_time is None) != (config.close_time is None):
        raise ValueError("SHOP_OPEN_TIME and SHOP_CLOSE_TIME must be set together")
    if config.open_time is not None and config.open_time >= config.close_time:
        raise ValueError("SHOP_OPEN_TIME must be earlier than SHOP_CLOSE_TIME")
    if (config.manager_email is None) != (config.manager_password is None):
        raise ValueError("MANAGER_EMAIL and MANAGER_PASSWORD must be set together")


def load_settings() -> Settings:
    config = Settings()
    validate_settings(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded (database: %s)", config.database_url)
    return config


settings = load_settings()
