"""
Application settings from environment variables.

Uses pydantic-settings for type-safe configuration.
"""

from typing import Optional

from pydantic_settings import BaseSettings

DEFAULT_API_URL = "https://api.shadowstudios.eu.org"


class Settings(BaseSettings):
    """Application settings from environment."""

    # Record API
    api_url: str = DEFAULT_API_URL
    api_key: str = ""
    request_timeout: float = 30.0
    max_record_id: int = 1025  # Highest National Dex number served by the API

    # Discord
    discord_bot_token: str = ""
    command_trigger: str = "!gtp"

    # Round defaults
    default_choice_count: int = 4
    default_allowed_wrong_guesses: int = 0
    default_timeout: float = 60.0
    default_label_language: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars


# Singleton instance
settings = Settings()
