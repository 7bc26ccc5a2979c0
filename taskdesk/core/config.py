"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. SECRET_KEY is validated at load time; DATABASE_URL may
be empty (database-backed routes then answer 503).
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskdesk.domain.value_objects.core import WorkflowPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "taskdesk"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database (postgresql+asyncpg://...). Schema is managed by Alembic.
    database_url: str = ""
    database_echo: bool = False
    db_pool_size: int = 20
    db_max_overflow: int = 30
    db_command_timeout: int = 60

    # Security (token verification only; tokens are issued elsewhere)
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Request / middleware
    request_id_header: str = "X-Request-ID"
    correlation_id_header: str = "X-Correlation-ID"
    rate_limit_enabled: bool = True

    # Negotiation workflow
    default_sla_hours: int = 24
    min_sla_hours: int = 1
    max_sla_hours: int = 168
    sla_warning_hours: int = 12
    min_reason_length: int = 10
    min_impact_note_length: int = 10
    reopen_sla_days: int = 3
    queue_default_limit: int = 50
    queue_max_limit: int = 200

    # OpenTelemetry
    telemetry_enabled: bool = True
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_jaeger_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Validate required secrets and workflow bounds."""
        if not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required. Generate with: openssl rand -hex 32."
            )
        if not 1 <= self.min_sla_hours <= self.default_sla_hours <= self.max_sla_hours:
            raise ValueError(
                "SLA hours must satisfy 1 <= MIN_SLA_HOURS <= DEFAULT_SLA_HOURS <= MAX_SLA_HOURS"
            )
        if self.reopen_sla_days < 1:
            raise ValueError("REOPEN_SLA_DAYS must be >= 1")
        if not 0.0 <= self.telemetry_sample_rate <= 1.0:
            raise ValueError("TELEMETRY_SAMPLE_RATE must be between 0.0 and 1.0")
        return self

    def workflow_policy(self) -> WorkflowPolicy:
        """Workflow limits handed to the use cases."""
        return WorkflowPolicy(
            default_sla_hours=self.default_sla_hours,
            min_sla_hours=self.min_sla_hours,
            max_sla_hours=self.max_sla_hours,
            sla_warning_hours=self.sla_warning_hours,
            min_reason_length=self.min_reason_length,
            min_impact_note_length=self.min_impact_note_length,
            reopen_sla_days=self.reopen_sla_days,
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.
    """
    return Settings()
