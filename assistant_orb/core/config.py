# python
# assistant_orb/core/config.py
"""Configuration settings for the Assistant Orb session manager.

Uses Pydantic BaseSettings for environment variable management.
"""
from enum import Enum

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from assistant_orb.exceptions.base import ConfigurationError


class EnvironmentEnum(str, Enum):
    development = "development"
    testing = "testing"
    staging = "staging"
    production = "production"


class LogLevelEnum(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormatEnum(str, Enum):
    simple = "simple"
    json = "json"


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="Assistant Orb", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")

    # ===== Backend API =====
    api_base_url: AnyHttpUrl = Field(
        default="http://localhost:5000/api", description="Base URL of the CRM API"
    )
    request_timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")
    read_max_retries: int = Field(
        default=2, description="Retries for idempotent reads (list/message fetches)"
    )
    retry_backoff_seconds: float = Field(
        default=0.5, description="Initial backoff between read retries, doubled per attempt"
    )

    # ===== Tenant Scope =====
    tenant_id: str | None = Field(default=None, description="Tenant identifier sent as X-Tenant-Id")
    user_id: str | None = Field(default=None, description="User identifier sent as X-User-Id")

    # ===== Widget Behaviour =====
    recent_events_limit: int = Field(
        default=5, description="Recent platform events attached to a message context"
    )
    conversation_preview_limit: int = Field(
        default=5, description="Conversations shown in the history panel"
    )
    send_after_implicit_create: bool = Field(
        default=False,
        description="Send the typed text once a conversation was created on its behalf",
    )
    optimistic_echo: bool = Field(
        default=False, description="Show a pending copy of the user's message while sending"
    )

    # ===== Telemetry =====
    telemetry_enabled: bool = Field(default=True, description="Post widget events to /events")
    event_source: str = Field(default="web", description="Source tag attached to tracked events")

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")
    log_format: LogFormatEnum = Field(default=LogFormatEnum.simple, description="Log format")

    # ===== Computed Properties =====
    @property
    def is_development(self) -> bool:
        return self.environment == EnvironmentEnum.development

    @property
    def is_production(self) -> bool:
        return self.environment == EnvironmentEnum.production

    @property
    def is_testing(self) -> bool:
        return self.environment == EnvironmentEnum.testing

    @property
    def base_url(self) -> str:
        return str(self.api_base_url).rstrip("/")

    @property
    def tenant_headers(self) -> dict[str, str]:
        headers = {}
        if self.tenant_id:
            headers["X-Tenant-Id"] = self.tenant_id
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        return headers

    # ===== Validation Methods =====
    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        if v and isinstance(v, str):
            lv = v.lower()
            if lv in ["dev", "develop"]:
                return "development"
            if lv in ["prod"]:
                return "production"
            return lv
        return v

    @field_validator("tenant_id", "user_id", mode="before")
    @classmethod
    def validate_identifier(cls, v):
        # Numeric ids from the environment or callers travel as header strings
        if v is None:
            return v
        v = str(v).strip()
        return v or None

    @field_validator("read_max_retries")
    @classmethod
    def validate_read_retries(cls, v):
        if v < 0:
            raise ValueError("read_max_retries cannot be negative")
        if v > 10:
            raise ValueError("read_max_retries cannot exceed 10")
        return v

    @field_validator("recent_events_limit", "conversation_preview_limit")
    @classmethod
    def validate_limits(cls, v):
        if v < 0:
            raise ValueError("Limits cannot be negative")
        return v


settings = Settings()


class ConfigValidator:
    @staticmethod
    def validate_required_settings(config: Settings | None = None):
        config = config or settings
        errors = []
        if not config.tenant_id:
            errors.append("TENANT_ID is required")
        if config.request_timeout <= 0:
            errors.append("REQUEST_TIMEOUT must be positive")
        if errors:
            raise ConfigurationError(
                f"Configuration errors: {', '.join(errors)}", details={"errors": errors}
            )

    @staticmethod
    def get_feature_status(config: Settings | None = None) -> dict:
        config = config or settings
        return {
            "telemetry_enabled": config.telemetry_enabled,
            "optimistic_echo": config.optimistic_echo,
            "send_after_implicit_create": config.send_after_implicit_create,
            "read_retries": config.read_max_retries,
            "environment": config.environment,
        }


def get_config_summary(config: Settings | None = None) -> dict:
    config = config or settings
    return {
        "app_name": config.app_name,
        "version": config.version,
        "environment": config.environment,
        "debug": config.debug,
        "api_base_url": config.base_url,
        "tenant_configured": bool(config.tenant_id),
        "features": ConfigValidator.get_feature_status(config),
    }


__all__ = [
    "settings",
    "Settings",
    "ConfigValidator",
    "get_config_summary",
    "EnvironmentEnum",
    "LogLevelEnum",
    "LogFormatEnum",
]
