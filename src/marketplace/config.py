"""Service settings read from the environment and an optional ``.env`` file.

Imports nothing from ``marketplace`` so any module may depend on it.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    http_port: int = 8000

    # -- Storage ---------------------------------------------------------------
    database_path: Path = Path("data/marketplace.db")
    seed_path: Path = Path("config/marketplace_seed.yaml")

    # -- Concurrency -----------------------------------------------------------
    lock_timeout_seconds: float = 5.0

    # -- Error reporting (secret) ----------------------------------------------
    sentry_dsn: SecretStr = SecretStr("")


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list -- never the full exception
        # which may contain raw SecretStr values.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def startup_problems(settings: Settings) -> list[str]:
    """Return a human-readable line for every unmet startup prerequisite."""
    problems: list[str] = []
    if not settings.seed_path.exists():
        problems.append(f"Seed file not found: {settings.seed_path}")
    if settings.lock_timeout_seconds <= 0:
        problems.append("LOCK_TIMEOUT_SECONDS must be positive")
    return problems


def validate_startup(settings: Settings) -> None:
    """Refuse to start in production when prerequisites are missing.

    Development mode logs the same problems as warnings and carries on,
    serving with no users or products if the seed file is absent.
    """
    problems = startup_problems(settings)
    if not problems:
        logger.info("startup_validation_passed")
        return

    if not settings.production:
        for problem in problems:
            logger.warning("startup_prerequisite_missing_dev", detail=problem)
        return

    for problem in problems:
        logger.error("startup_prerequisite_missing", detail=problem)
    print("Startup failed:", file=sys.stderr)
    print("\n".join(f"  - {problem}" for problem in problems), file=sys.stderr)
    sys.exit(1)
