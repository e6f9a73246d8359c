"""
Configuration module using Pydantic Settings.

Loads the Gemini endpoint, generation parameters and session/formatting
options from environment variables. Supports .env files for local development.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Gemini
    google_api_key: str
    gemini_model: str = "gemini-2.0-flash-exp"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_temperature: float = 0.9
    gemini_top_p: float = 1.0
    gemini_top_k: int = 1
    gemini_max_output_tokens: int = 2048
    # None leaves the upstream call unbounded
    gemini_timeout_seconds: float | None = None

    # Sessions
    session_ttl_seconds: float | None = None

    # Formatting
    promote_colon_headings: bool = True

    # Application Insights
    applicationinsights_connection_string: str = ""

    # App
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:5173"

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Factory for cached settings instance."""
    return Settings()
