"""
Configuration - Environment-driven settings.

Environment variables:
    MEMMATCH_ENV                development | production
    MEMMATCH_FLIP_BACK_DELAY    Seconds a non-matching pair stays visible
    MEMMATCH_LOG_LEVEL          Logging level name
    MEMMATCH_SESSION_MAX_AGE    Seconds before an idle session may be dropped
    ALLOWED_ORIGINS             Comma-separated CORS origins
"""

from __future__ import annotations
from dataclasses import dataclass, field
from functools import lru_cache
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_FLIP_BACK_DELAY = 0.7
DEFAULT_SESSION_MAX_AGE = 3600

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Config:
    env: str = "development"
    flip_back_delay: float = DEFAULT_FLIP_BACK_DELAY
    log_level: str = "INFO"
    session_max_age: int = DEFAULT_SESSION_MAX_AGE
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def debug(self) -> bool:
        return self.env == "development"


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Ignoring negative %s=%r, using %s", name, raw, default)
        return default
    return value


def load_config() -> Config:
    """Read settings from the environment."""
    return Config(
        env=os.environ.get("MEMMATCH_ENV", "development"),
        flip_back_delay=_env_number("MEMMATCH_FLIP_BACK_DELAY", DEFAULT_FLIP_BACK_DELAY, float),
        log_level=os.environ.get("MEMMATCH_LOG_LEVEL", "INFO").upper(),
        session_max_age=_env_number("MEMMATCH_SESSION_MAX_AGE", DEFAULT_SESSION_MAX_AGE, int),
        allowed_origins=[
            o.strip() for o in os.environ.get("ALLOWED_ORIGINS", "*").split(",") if o.strip()
        ],
    )


@lru_cache
def get_config() -> Config:
    return load_config()


def configure_logging(level: str | None = None):
    """Set up root logging for an entry point (CLI or API)."""
    level_name = (level or get_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
