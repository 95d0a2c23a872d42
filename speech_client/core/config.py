"""
Client configuration management using Pydantic Settings.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "SpeechClient"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", pattern="^(development|production)$")

    # Runtime platform: decides the credential policy
    PLATFORM: str = Field(default="ios", pattern="^(ios|android|web)$")

    # API
    BASE_URL: str = "http://localhost:3000"
    API_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Google OAuth
    GOOGLE_CLIENT_ID_WEB: Optional[str] = None
    GOOGLE_CLIENT_ID_IOS: Optional[str] = None
    GOOGLE_CLIENT_ID_ANDROID: Optional[str] = None
    GOOGLE_AUTHORIZATION_ENDPOINT: str = "https://accounts.google.com/o/oauth2/v2/auth"
    OAUTH_REDIRECT_URI: Optional[str] = None

    # Local storage
    STORAGE_DIR: Path = Path.home() / ".speech_client"
    AUTH_ENCRYPTION_KEY: Optional[str] = None
    DEFAULT_LANGUAGE: str = Field(default="uk", pattern="^(uk|ru)$")

    # Session bootstrap
    BOOTSTRAP_MAX_RETRIES: int = Field(default=2, ge=0)
    BOOTSTRAP_RETRY_BASE_DELAY_SECONDS: float = Field(default=1.0, ge=0)
    BOOTSTRAP_RETRY_MAX_DELAY_SECONDS: float = Field(default=30.0, ge=0)

    # Sentry
    SENTRY_DSN: Optional[str] = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    @field_validator("BASE_URL", mode="before")
    @classmethod
    def normalize_base_url(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("BASE_URL is required")
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"BASE_URL must be an http(s) URL. Got: {v}")
        return v.rstrip("/")

    @field_validator("PLATFORM", mode="before")
    @classmethod
    def normalize_platform(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    @property
    def oauth_redirect_uri(self) -> str:
        """Redirect URI for the web implicit flow."""
        return self.OAUTH_REDIRECT_URI or self.BASE_URL


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Client settings
    """
    return Settings()


# Create a settings instance for easy import
settings = get_settings()
