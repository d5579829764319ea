from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Follows 12-factor app configuration principles.
    """

    # env_file is only used as fallback, env vars take precedence
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # JSON-lines message store
    MESSAGES_FILE: str = "messages.json"

    # Logging Configuration
    LOG_LEVEL: str = "INFO"

    # Message validation limits
    MAX_MESSAGE_LENGTH: int = 250
    MAX_RECIPIENT_LENGTH: int = 14


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Global settings instance
settings = get_settings()
