"""
Application configuration using Pydantic Settings.
"""

from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ListenerSettings(BaseSettings):
    """Bundled listener configuration."""

    model_config = SettingsConfigDict(env_prefix="HOOKKERNEL_LISTENER_")

    request_id_enabled: bool = Field(default=True)
    request_id_header: str = Field(default="X-Request-ID")
    exception_handler_enabled: bool = Field(
        default=True,
        description="Convert uncaught errors into JSON error responses",
    )
    exception_main_request_only: bool = Field(
        default=False,
        description="Let sub-request errors propagate to the enclosing dispatch",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="HOOKKERNEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="hookkernel")
    app_version: str = Field(default="0.1.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or text")

    listeners: ListenerSettings = Field(default_factory=ListenerSettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production", "testing"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in {"json", "text"}:
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
