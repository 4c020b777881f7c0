"""
Alert service: PSPs bucketed by health status.
"""

from datetime import datetime, timezone

import structlog

from pspmonitor.models.alerts import AlertSummary, PSPHealth
from pspmonitor.models.enums import HealthStatus
from pspmonitor.models.metrics import TimeRange
from pspmonitor.services.metrics_service import MetricsService

logger = structlog.get_logger()


class AlertService:
    """
    Summarizes current PSP health into unhealthy/degraded/healthy buckets.

    Attributes:
        metrics_service: Source of per-PSP health evaluations
    """

    def __init__(self, metrics_service: MetricsService):
        self.metrics_service = metrics_service

    def get_alert_summary(self, time_range: TimeRange) -> AlertSummary:
        """
        Evaluate every PSP in the window and group the results by status.

        Args:
            time_range: Window to evaluate

        Returns:
            AlertSummary with one bucket per HealthStatus
        """
        results = self.metrics_service.get_all_psp_health(time_range)

        buckets: dict[HealthStatus, list[PSPHealth]] = {status: [] for status in HealthStatus}
        for health in results:
            buckets[health.status].append(health)

        summary = AlertSummary(
            timestamp=datetime.now(timezone.utc),
            unhealthy_psps=buckets[HealthStatus.UNHEALTHY],
            degraded_psps=buckets[HealthStatus.DEGRADED],
            healthy_psps=buckets[HealthStatus.HEALTHY],
            total_psps=len(results),
        )

        logger.info(
            "alert_summary_computed",
            unhealthy=len(summary.unhealthy_psps),
            degraded=len(summary.degraded_psps),
            healthy=len(summary.healthy_psps),
        )
        return summary
