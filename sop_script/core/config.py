"""Application configuration using Pydantic Settings.

This project loads configuration from environment variables.

Optionally, you may point `ENV_FILE` at a local env file (for development).
Values already present in the environment take precedence over the file.
"""

import os
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sop_script.domain.enums import GrammarName


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class Settings(BaseSettings):
    """
    Application settings with type validation.

    Every field has a default so the compiler can be used as a library
    without any environment configured.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "sop-script-service"
    app_log_level: str = "INFO"

    # Observability
    observability_enabled: bool = True
    observability_structured_logs: bool = True
    observability_request_id_header: str = "X-Request-ID"

    # OpenTelemetry Configuration (off unless a collector is available)
    otel_enabled: bool = False
    otel_service_name: str = "sop-script-service"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_exporter_otlp_headers: str | None = None
    otel_traces_sampler: str = "parent_trace_always"
    otel_traces_sampler_arg: float = 1.0

    # Metrics token for protecting /metrics endpoint
    metrics_token: str | None = None

    # CORS Configuration (the rule editor dev servers)
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Request size limit for compile/validate payloads
    max_request_size_mb: int = Field(default=1, ge=1, le=32)

    # S1 compiler behaviour
    # Strict mode reports unknown condition operators as validation errors
    # instead of silently compiling them to "==".
    s1_strict_operators: bool = False
    s1_grammar: GrammarName = GrammarName.BASIC

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError:
            raise ValueError(
                f"app_env must be one of {[e.value for e in AppEnvironment]}, got '{v}'"
            )

    @field_validator("s1_grammar", mode="before")
    @classmethod
    def validate_s1_grammar(cls, v: str | GrammarName) -> GrammarName:
        """Accept grammar names case-insensitively."""
        if isinstance(v, GrammarName):
            return v
        try:
            return GrammarName(str(v).strip().lower())
        except ValueError:
            raise ValueError(
                f"s1_grammar must be one of {[g.value for g in GrammarName]}, got '{v}'"
            )

    @field_validator("app_log_level")
    @classmethod
    def validate_app_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"app_log_level must be a standard logging level, got '{v}'")
        return level

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """
        Validate production-specific settings.

        These checks prevent insecure configurations from being deployed to production.
        """
        if self.app_env == AppEnvironment.PROD:
            if not self.metrics_token or len(self.metrics_token) < 16:
                raise ValueError("METRICS_TOKEN must be set and at least 16 characters in production")

            # CORS must not allow localhost in production
            for origin in self.cors_origins_list:
                if "localhost" in origin or "127.0.0.1" in origin:
                    raise ValueError(
                        f"CORS origins must not contain localhost in production: {origin}"
                    )

        return self


settings = Settings()
