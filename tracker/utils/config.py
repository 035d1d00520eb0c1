"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import List, Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # OpenRouter (required for live rater queries)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"

    # Application Settings
    LOG_LEVEL: str = "INFO"
    PORT: int = 8000

    # Raters queried when a request does not select any
    DEFAULT_RATERS: List[str] = ["chatgpt", "claude", "gemini"]

    # Storage (unset = in-memory)
    STORAGE_PATH: Optional[str] = None
    STORAGE_COMPRESS: bool = False  # gzip JSON files under STORAGE_PATH

    # Limits
    CONTENT_TEXT_LIMIT: int = 10000

    # Timeouts (seconds)
    RATER_TIMEOUT: float = 60.0
    SCRAPER_TIMEOUT: float = 15.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
