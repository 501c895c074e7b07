# core/config.py
"""
Application settings.

Values come from environment variables (or a ``.env`` file next to the
process) and fall back to the defaults below.  Import ``settings`` for the
process-wide instance or call ``get_settings()`` when you need the cached
accessor (tests clear it with ``get_settings.cache_clear()``).
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root: core/.. → repo root
BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Runtime configuration for the aggregator service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Service
    # ------------------------------------------------------------------
    PROJECT_NAME: str = "Camera Update Aggregator"
    DEBUG: bool = False
    PORT: int = 8000
    WORKERS: int = 1
    LOG_LEVEL: str = "INFO"
    ALLOWED_HOSTS: List[str] = Field(default_factory=lambda: ["*"])

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    DEFAULT_USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    TIMEOUT: float = 10.0
    LISTING_TIMEOUT: float = 15.0
    FETCH_ATTEMPTS: int = Field(default=3, ge=1)
    RETRY_BACKOFF: float = Field(default=1.0, ge=0.0)
    REQUEST_DELAY: float = Field(default=0.8, ge=0.0)
    SOURCE_DELAY: float = Field(default=1.0, ge=0.0)
    RESPECT_ROBOTS_TXT: bool = False
    DEADLINE_SECONDS: Optional[float] = None

    # ------------------------------------------------------------------
    # Source resolution limits
    # ------------------------------------------------------------------
    SOURCES_PATH: Path = BASE_DIR / "configs" / "sources.yaml"
    MAX_CANDIDATES_PER_LISTING: int = 10
    MAX_URLS_PER_BRAND: int = 15
    MAX_ARTICLES_PER_BRAND: int = 12
    MAX_URL_LENGTH: int = 200
    MIN_URL_PARTS: int = 4

    # ------------------------------------------------------------------
    # Heuristic thresholds (see core/thresholds.py)
    # ------------------------------------------------------------------
    LANGUAGE_WORD_RATIO: float = 0.10
    SPECIAL_CHAR_RATIO: float = 0.10
    LENGTH_SIMILARITY: float = 0.9
    MIN_QUALITY_SCORE: int = 4


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
