"""Application configuration management."""

import logging
import re
import secrets
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

PRODUCTION_ENVS = {"prod", "production"}

# Temporary signing secret for non-production runs (generated once per process)
_dev_secret_key: Optional[str] = None

_DURATION_RE = re.compile(
    r"^(?P<value>-?\d+(?:\.\d+)?)\s*(?P<unit>ms|s|m|h|d|w|y)?$", re.IGNORECASE
)
_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
    "y": 365.25 * 24 * 60 * 60,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Deployment environment ("prod"/"production" enables Discord verification)
    env: str = "local"

    # Database
    database_path: str = "/data/game.db"

    # Session store (in-memory when unset)
    redis_url: Optional[str] = None

    # Server
    public_url: str = "http://localhost:3000"
    log_level: str = "info"

    # Session
    secret_key: Optional[str] = None
    session_lifetime: str = "30d"

    # Rate limiting
    rate_limit_enabled: bool = True
    login_rate_limit_per_minute: int = 30

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def is_production(self) -> bool:
        return self.env.strip().lower() in PRODUCTION_ENVS


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def parse_duration(raw: str) -> timedelta:
    """Parse a duration such as ``30d``, ``12h`` or ``90m``.

    A bare number is taken as milliseconds, matching the notation used by the
    game client's original session configuration.
    """
    match = _DURATION_RE.match((raw or "").strip())
    if not match:
        raise ValueError(f"Invalid duration: {raw!r}")

    value = float(match.group("value"))
    unit = (match.group("unit") or "ms").lower()
    return timedelta(seconds=value * _UNIT_SECONDS[unit])


def get_session_lifetime() -> timedelta:
    """Get the configured session token lifetime."""
    return parse_duration(get_settings().session_lifetime)


def get_secret_key() -> str:
    """Get the token signing secret.

    Production refuses to start without an explicit secret. Elsewhere a random
    secret is generated per process, so tokens do not survive restarts.
    """
    settings = get_settings()
    if settings.secret_key:
        return settings.secret_key

    if settings.is_production:
        raise RuntimeError("SECRET_KEY must be set in production")

    global _dev_secret_key
    if _dev_secret_key is None:
        logger.warning("SECRET_KEY not set, using a random per-process secret")
        _dev_secret_key = secrets.token_urlsafe(32)
    return _dev_secret_key
