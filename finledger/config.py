"""
Application configuration module.
Loads environment variables and provides application-wide settings.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root (one level up from the package)
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or .env file.
    (Note: Environment variables take precedence over .env file)
    """

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/finledger.db"
    SQL_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # Security
    BCRYPT_ROUNDS: int = 12

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        case_sensitive=True,
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Get a settings instance (re-reads the environment on every call)."""
    return Settings()
