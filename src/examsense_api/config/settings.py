from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables or .env files."""

    model_config = SettingsConfigDict(
        env_prefix="EXAMSENSE_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["local", "test", "production"] = "local"
    app_name: str = "ExamSense API"
    api_version: str = "0.1.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = False
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://localhost:3000",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
        ]
    )
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    gemini_api_key: str | None = Field(
        default=None,
        description="API key for the Google Gemini platform.",
    )
    gemini_endpoint: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL for the Gemini API.",
    )
    gemini_model: str = Field(
        default="gemini-3-pro-preview",
        description="Gemini model identifier used for exam analysis requests.",
    )
    gemini_request_timeout_seconds: float = Field(
        default=120.0,
        ge=1.0,
        description="Timeout for outbound requests to the Gemini API.",
    )
    analysis_temperature: float | None = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Optional sampling temperature; the model default applies when unset.",
    )
    analysis_max_output_tokens: int | None = Field(
        default=None,
        ge=1,
        description="Optional cap on generated tokens for a single analysis.",
    )
    analysis_attachment_max_bytes: int = Field(
        default=20 * 1024 * 1024,
        ge=1,
        description="Maximum size in bytes of a single uploaded syllabus or question file.",
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


__all__ = ["Settings", "get_settings"]
