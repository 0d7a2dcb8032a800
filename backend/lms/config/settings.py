"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated. Tuning knobs
for the review engine fall back to config/default.yaml.

Usage:
    from lms.config import settings

    # Access settings
    db_url = settings.DB_URL
    limit = settings.REVIEW_DEFAULT_LIMIT
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()

_review_config: dict[str, Any] = yaml_config.get("review", {})
_sm2_config: dict[str, Any] = yaml_config.get("sm2", {})
_extraction_config: dict[str, Any] = yaml_config.get("extraction", {})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = yaml_config.get("app", {}).get("name", "Course Review Engine")
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = yaml_config.get("cors", {}).get("allow_origins", ["*"])

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "lms"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "lms"

    # Full SQLAlchemy URL override (e.g. sqlite+aiosqlite:///./review.db)
    DATABASE_URL: str = ""

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DB_URL(self) -> str:
        """Connection URL actually used by the engine."""
        return self.DATABASE_URL or self.POSTGRES_URL

    # Service-to-service key. Empty disables the check (development mode).
    API_KEY: str = ""

    # Review queue
    REVIEW_DEFAULT_LIMIT: int = _review_config.get("default_limit", 20)
    REVIEW_MAX_LIMIT: int = _review_config.get("max_limit", 100)
    REVIEW_SCHEDULE_DAYS: int = _review_config.get("schedule_days", 7)

    # Mastery threshold: repetitions >= N and interval >= M days
    REVIEW_MASTERED_MIN_REPETITIONS: int = _review_config.get(
        "mastered_min_repetitions", 3
    )
    REVIEW_MASTERED_MIN_INTERVAL_DAYS: int = _review_config.get(
        "mastered_min_interval_days", 21
    )

    # SM-2 scheduler
    SM2_INITIAL_EASE_FACTOR: float = _sm2_config.get("initial_ease_factor", 2.5)
    SM2_MIN_EASE_FACTOR: float = _sm2_config.get("min_ease_factor", 1.3)
    SM2_PASSING_QUALITY: int = _sm2_config.get("passing_quality", 3)
    SM2_FIRST_INTERVAL_DAYS: int = _sm2_config.get("first_interval_days", 1)
    SM2_SECOND_INTERVAL_DAYS: int = _sm2_config.get("second_interval_days", 6)

    # Item extraction
    KEYPOINT_QUESTION_TEMPLATE: str = _extraction_config.get(
        "keypoint_question_template", "What is a key concept about {title}?"
    )
    FILL_BLANK_MARKER: str = _extraction_config.get("fill_blank_marker", "______")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
