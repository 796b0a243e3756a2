"""
Configuration Management for ScanSave

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini generative service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use for every call"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature for free-text calls"
    )
    extraction_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature for receipt extraction"
    )

    # Grounding
    enable_grounding: bool = Field(
        default=False,
        description="Attach the grounding tool to chat calls"
    )
    grounding_tool: str = Field(
        default="google_search_retrieval",
        description="Tool name passed to the SDK when grounding is enabled"
    )


class StorageSettings(BaseSettings):
    """Local durable storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    data_dir: str = Field(
        default=".scansave",
        description="Directory holding the receipt, session and active-session snapshots"
    )

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Language
    default_language: str = Field(
        default="en",
        description="Language code used when the caller does not pass one"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp,heic",
        description="Comma-separated list of supported image formats"
    )

    # Pipeline
    extraction_max_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="How many times the pipeline calls the extractor on service failures"
    )
    insight_max_words: int = Field(
        default=25,
        ge=5,
        description="Target length of a receipt insight"
    )

    # Weekly trend
    weekly_window_days: int = Field(
        default=7,
        ge=1,
        description="Size of the trailing window for the weekly summary"
    )
    weekly_min_receipts: int = Field(
        default=2,
        ge=1,
        description="Minimum receipts in the window before a summary is generated"
    )
    weekly_max_words: int = Field(
        default=70,
        ge=20,
        description="Target length of the weekly summary"
    )

    # Chat
    chat_title_max_words: int = Field(
        default=4,
        ge=1,
        description="Maximum words in an inferred chat title"
    )

    @field_validator("default_language")
    @classmethod
    def normalize_language(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so that a missing Gemini key does not
    # prevent the storage or app settings from loading.

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("gemini", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
