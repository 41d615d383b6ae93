"""
Configuration for Woodframe Books.

Values come from environment variables (and an optional .env file) through
pydantic-settings. Nothing here is required: every field has a default that
works for a local single-user setup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini analysis collaborator configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key; analysis is disabled without it"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    max_output_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in the report"
    )


class BooksSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("."),
        description="Directory holding the persisted ledger slot"
    )
    storage_key: str = Field(
        default="woodframe_books_data_v1",
        min_length=1,
        description="Key of the single persisted slot"
    )
    locale: str = Field(
        default="en",
        description="Locale of CSV headers and type labels (en, es)"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of console output"
    )

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("en", "es"):
            raise ValueError(f"Unsupported locale: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()


@lru_cache()
def get_settings() -> BooksSettings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload after changing the environment.
    """
    return BooksSettings()
