"""Configuration management with Pydantic Settings.

Loads configuration from environment variables and an optional .env file.
Required fields are validated at startup; the model API key is optional
here and only checked when a request is actually made.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Allowed log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Settings(BaseSettings):
    """Central configuration of the tax document classifier.

    Required fields (must be set in .env or ENV):
    - SUPABASE_URL
    - SUPABASE_ANON_KEY
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Supabase (storage, tables, auth) ---
    supabase_url: str = Field(
        ...,
        description="Project URL, e.g. https://abc.supabase.co",
    )
    supabase_anon_key: str = Field(
        ...,
        description="Public anon key of the Supabase project",
    )
    storage_bucket: str = Field(
        default="docu",
        description="Storage bucket holding uploaded documents",
    )

    # --- Model endpoint (OpenRouter chat completions) ---
    # A missing key is reported per call, not at startup
    openrouter_api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the chat-completions endpoint",
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="Base URL of the chat-completions API",
    )
    classification_model: str = Field(
        default="x-ai/grok-2-vision-1212",
        description="Vision model used for document classification",
    )
    chat_model: str = Field(
        default="meta-llama/llama-3.2-11b-vision-instruct",
        description="Vision model used for document Q&A",
    )
    app_origin: str = Field(
        default="http://localhost:3000",
        description="Sent as HTTP-Referer for OpenRouter attribution",
    )
    model_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Transport timeout for a single model request",
    )

    # --- Caches & pacing ---
    classification_cache_ttl_seconds: float = Field(
        default=300.0,
        ge=1,
        description="Lifetime of a cached classification result",
    )
    chat_cache_ttl_seconds: float = Field(
        default=60.0,
        ge=1,
        description="Lifetime of a cached chat transcript",
    )
    batch_stagger_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay step between document starts in a batch verify",
    )

    # --- Logging ---
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Log level of the application",
    )
    log_dir: Optional[Path] = Field(
        default=None,
        description="Directory for rotating log files (None = stdout only)",
    )

    @field_validator("supabase_url", "openrouter_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slashes so URL joins stay consistent."""
        return v.rstrip("/")

    @field_validator("openrouter_api_key")
    @classmethod
    def empty_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty or blank key the same as an unset one."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def has_model_credentials(self) -> bool:
        """True if a model API key is configured."""
        return self.openrouter_api_key is not None


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the Settings instance (lazy singleton).

    Created on first call and reused afterwards.
    Raises ValidationError if required fields are missing.
    """
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
