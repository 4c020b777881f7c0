"""
Health Evaluator: Threshold Classification of PSP Metrics.

Evaluates a PSPMetrics record against two-tier thresholds for timeout rate,
mean response time, and error rate. Each metric independently raises at most
one alert: critical when it strictly exceeds the unhealthy bound, otherwise a
warning when it strictly exceeds the degraded bound. A value exactly equal to
a bound does not breach it.

Overall status follows the worst alert severity: any critical makes the PSP
unhealthy, any warning makes it degraded, otherwise it is healthy.

Version: health_eval_v1
"""

from typing import Callable, Optional

from pspmonitor.models.alerts import (
    AlertMessage,
    AlertThresholds,
    HealthEvaluation,
    MetricThreshold,
)
from pspmonitor.models.enums import AlertSeverity, HealthStatus
from pspmonitor.models.metrics import PSPMetrics


def _format_number(value: float) -> str:
    return format(value, ".10g")


def format_rate_bound(bound: float) -> str:
    """Render a rate bound as a percentage, e.g. 0.15 -> '> 15%'."""
    return f"> {_format_number(bound * 100)}%"


def format_time_bound(bound: float) -> str:
    """Render a response-time bound in milliseconds, e.g. '> 20000ms'."""
    return f"> {_format_number(bound)}ms"


def status_from_alerts(alerts: list[AlertMessage]) -> HealthStatus:
    """
    Derive the overall health status from an alert list.

    Args:
        alerts: Alerts raised by one evaluation

    Returns:
        UNHEALTHY if any alert is critical, DEGRADED if any is a warning,
        HEALTHY otherwise
    """
    severities = {alert.severity for alert in alerts}
    if AlertSeverity.CRITICAL in severities:
        return HealthStatus.UNHEALTHY
    if AlertSeverity.WARNING in severities:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


class HealthEvaluator:
    """
    Classifies PSP metrics into a health status with threshold alerts.

    Metrics are checked in a fixed order (timeout_rate, avg_response_time_ms,
    error_rate) so alert lists are deterministic.

    Attributes:
        thresholds: Two-tier bounds per monitored metric

    Example:
        >>> evaluator = HealthEvaluator()
        >>> result = evaluator.evaluate(metrics)
        >>> result.status
        <HealthStatus.DEGRADED: 'degraded'>
    """

    def __init__(self, thresholds: Optional[AlertThresholds] = None):
        """
        Initialize the health evaluator.

        Args:
            thresholds: Threshold set (defaults to the published defaults)
        """
        self.thresholds = thresholds or AlertThresholds()

    def evaluate(self, metrics: PSPMetrics) -> HealthEvaluation:
        """
        Evaluate one metrics record.

        Args:
            metrics: Metrics for a single PSP and window

        Returns:
            HealthEvaluation with status and zero to three alerts
        """
        checks = (
            ("timeout_rate", metrics.timeout_rate, self.thresholds.timeout_rate, format_rate_bound),
            (
                "avg_response_time_ms",
                metrics.avg_response_time_ms,
                self.thresholds.avg_response_time,
                format_time_bound,
            ),
            ("error_rate", metrics.error_rate, self.thresholds.error_rate, format_rate_bound),
        )

        alerts = []
        for metric, value, threshold, formatter in checks:
            alert = self._check_metric(metric, value, threshold, formatter)
            if alert is not None:
                alerts.append(alert)

        return HealthEvaluation(status=status_from_alerts(alerts), alerts=alerts)

    def describe_thresholds(self) -> dict:
        """
        Human-readable view of the configured thresholds.

        Returns:
            dict keyed by metric name with "unhealthy" and "degraded" bounds
        """
        return {
            "timeout_rate": {
                "unhealthy": format_rate_bound(self.thresholds.timeout_rate.unhealthy),
                "degraded": format_rate_bound(self.thresholds.timeout_rate.degraded),
            },
            "avg_response_time_ms": {
                "unhealthy": format_time_bound(self.thresholds.avg_response_time.unhealthy),
                "degraded": format_time_bound(self.thresholds.avg_response_time.degraded),
            },
            "error_rate": {
                "unhealthy": format_rate_bound(self.thresholds.error_rate.unhealthy),
                "degraded": format_rate_bound(self.thresholds.error_rate.degraded),
            },
        }

    # =========================================================================
    # Threshold Checks
    # =========================================================================

    def _check_metric(
        self,
        metric: str,
        value: float,
        threshold: MetricThreshold,
        formatter: Callable[[float], str],
    ) -> Optional[AlertMessage]:
        """
        Compare a value against both tiers; the critical tier wins.

        Returns:
            AlertMessage for the worst breached tier, or None
        """
        if value > threshold.unhealthy:
            bound, severity = threshold.unhealthy, AlertSeverity.CRITICAL
        elif value > threshold.degraded:
            bound, severity = threshold.degraded, AlertSeverity.WARNING
        else:
            return None

        return AlertMessage(
            metric=metric,
            threshold=formatter(bound),
            current_value=value,
            severity=severity,
        )
