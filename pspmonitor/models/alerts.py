"""
Alerting models for the PSP health monitor.

This module defines threshold configuration, threshold-breach alerts, and
the evaluation bundles returned to the transport layer.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import AlertSeverity, HealthStatus
from .metrics import PSPMetrics


class MetricThreshold(BaseModel):
    """
    Two-tier bound for a single metric.

    A value strictly above ``unhealthy`` is critical; a value strictly above
    ``degraded`` (and not above ``unhealthy``) is a warning.
    """

    model_config = ConfigDict(frozen=True)

    degraded: float = Field(ge=0, description="Warning bound (exclusive)")
    unhealthy: float = Field(ge=0, description="Critical bound (exclusive)")

    @model_validator(mode="after")
    def validate_tier_order(self) -> "MetricThreshold":
        """Ensure the unhealthy bound is the more severe one."""
        if self.unhealthy < self.degraded:
            raise ValueError(
                f"unhealthy bound ({self.unhealthy}) must not be below "
                f"degraded bound ({self.degraded})"
            )
        return self


class AlertThresholds(BaseModel):
    """Threshold set consumed by the health evaluator."""

    model_config = ConfigDict(frozen=True)

    timeout_rate: MetricThreshold = Field(
        default=MetricThreshold(degraded=0.12, unhealthy=0.15)
    )
    avg_response_time: MetricThreshold = Field(
        default=MetricThreshold(degraded=16000, unhealthy=20000)
    )
    error_rate: MetricThreshold = Field(
        default=MetricThreshold(degraded=0.08, unhealthy=0.10)
    )


class AlertMessage(BaseModel):
    """
    A single threshold breach.

    Attributes:
        metric: Name of the breached metric field
        threshold: Human-readable bound that was exceeded (e.g. "> 15%")
        current_value: Observed metric value
        severity: warning or critical
    """

    model_config = ConfigDict(frozen=True)

    metric: str
    threshold: str
    current_value: float
    severity: AlertSeverity


class HealthEvaluation(BaseModel):
    """Status and alerts produced by one health evaluation."""

    model_config = ConfigDict(frozen=True)

    status: HealthStatus
    alerts: list[AlertMessage] = Field(default_factory=list)


class PSPHealth(BaseModel):
    """Evaluation result bundle for one PSP."""

    model_config = ConfigDict(frozen=True)

    psp: str
    status: HealthStatus
    metrics: PSPMetrics
    alerts: list[AlertMessage] = Field(default_factory=list)


class AlertSummary(BaseModel):
    """PSPs bucketed by health status at a point in time."""

    timestamp: datetime
    unhealthy_psps: list[PSPHealth] = Field(default_factory=list)
    degraded_psps: list[PSPHealth] = Field(default_factory=list)
    healthy_psps: list[PSPHealth] = Field(default_factory=list)
    total_psps: int = Field(ge=0)
