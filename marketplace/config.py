"""Central configuration for the PBF Marketplace backend.

This module uses Pydantic Settings for validation and env management.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmailSettings(BaseSettings):
    """Notification transport configuration.

    ``enabled`` selects live SMTP delivery; when false, notifications are
    simulated and only logged.
    """
    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("SEND_EMAIL", "EMAIL_ENABLED"),
    )
    user: str | None = Field(default=None)
    password: SecretStr | None = Field(default=None)
    host: str = Field(default="smtp.gmail.com")
    port: int = Field(default=587, ge=1, le=65535)
    use_starttls: bool = Field(default=True)
    sender: str | None = Field(default=None, description="From address, defaults to user")
    timeout_seconds: float = Field(default=30.0, gt=0, description="SMTP socket timeout")
    dispatch_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Upper bound for a single dispatch; unset means no bound",
    )

    @model_validator(mode="after")
    def require_credentials_when_enabled(self) -> EmailSettings:
        if self.enabled and (not self.user or self.password is None):
            raise ValueError("EMAIL_USER and EMAIL_PASSWORD are required when SEND_EMAIL is true")
        return self

    @property
    def from_address(self) -> str:
        return self.sender or self.user or ""


class DirectorySettings(BaseSettings):
    """Supplier directory source."""
    model_config = SettingsConfigDict(env_prefix="DIRECTORY_", extra="ignore")

    file: Path | None = Field(
        default=None,
        description="JSON list of {name, email, product}; built-in directory when unset",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = Field(default=False)
    app_name: str = Field(default="PBF Marketplace")
    version: str = Field(default="0.1.0")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Sub-configs
    email: EmailSettings = Field(default_factory=EmailSettings)
    directory: DirectorySettings = Field(default_factory=DirectorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
