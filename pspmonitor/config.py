"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pspmonitor.models.alerts import AlertThresholds, MetricThreshold


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    db_path: str = Field(
        default="./data/payments.duckdb",
        description="DuckDB file path (':memory:' for an ephemeral database)",
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3000, description="API port")
    api_reload: bool = Field(default=False, description="Enable hot reload")
    cors_origins: str = Field(
        default="*",
        description="CORS allowed origins (comma-separated)",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Alert thresholds
    timeout_rate_unhealthy: float = Field(
        default=0.15, ge=0.0, le=1.0, description="Timeout rate above which a PSP is unhealthy"
    )
    timeout_rate_degraded: float = Field(
        default=0.12, ge=0.0, le=1.0, description="Timeout rate above which a PSP is degraded"
    )
    avg_response_time_unhealthy: float = Field(
        default=20000, ge=0, description="Mean response time (ms) above which a PSP is unhealthy"
    )
    avg_response_time_degraded: float = Field(
        default=16000, ge=0, description="Mean response time (ms) above which a PSP is degraded"
    )
    error_rate_unhealthy: float = Field(
        default=0.10, ge=0.0, le=1.0, description="Error rate above which a PSP is unhealthy"
    )
    error_rate_degraded: float = Field(
        default=0.08, ge=0.0, le=1.0, description="Error rate above which a PSP is degraded"
    )

    # Query defaults
    default_time_window_minutes: int = Field(
        default=60, ge=1, description="Lookback window used when a query omits 'from'/'to'"
    )

    # Development
    dev_mode: bool = Field(default=False, description="Development mode")

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def alert_thresholds(self) -> AlertThresholds:
        """
        Group the six threshold settings for the health evaluator.

        Raises:
            pydantic.ValidationError: If a degraded bound exceeds its unhealthy bound
        """
        return AlertThresholds(
            timeout_rate=MetricThreshold(
                degraded=self.timeout_rate_degraded,
                unhealthy=self.timeout_rate_unhealthy,
            ),
            avg_response_time=MetricThreshold(
                degraded=self.avg_response_time_degraded,
                unhealthy=self.avg_response_time_unhealthy,
            ),
            error_rate=MetricThreshold(
                degraded=self.error_rate_degraded,
                unhealthy=self.error_rate_unhealthy,
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
