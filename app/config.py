"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed application configuration."""

    api_key: str = Field(alias="API_KEY")
    base_url: str = Field(alias="BASE_URL", description="Chat completion endpoint")
    site_title: str = Field(alias="SITE_TITLE")
    site_origin: str = Field(default="http://localhost:8000", alias="SITE_ORIGIN")
    completion_model: str = Field(default="openrouter/auto", alias="COMPLETION_MODEL")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", alias="LOG_LEVEL"
    )
    port: int = Field(default=8000, alias="PORT")
    http_timeout: float = Field(default=60.0, alias="HTTP_TIMEOUT", description="Seconds")
    ws_inactivity_timeout: float = Field(
        default=300.0, alias="WS_INACTIVITY_TIMEOUT", description="Seconds"
    )
    notification_ttl: float = Field(default=4.0, alias="NOTIFICATION_TTL")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of settings."""

    return Settings()
