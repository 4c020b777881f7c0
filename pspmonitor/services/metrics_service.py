"""
Metrics service: PSP health, breakdowns, trends and scores.

Orchestrates storage snapshots and the pure evaluation engine for the HTTP
layer. Every method takes an explicit time window; callers that have none
use ``default_time_range()``.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog

from pspmonitor.engine.monitors import HealthEvaluator, HealthScorer
from pspmonitor.engine.trend_analyzer import TrendAnalyzer
from pspmonitor.models.alerts import AlertThresholds, PSPHealth
from pspmonitor.models.metrics import PSPHealthScore, PSPMetrics, TimeRange, TrendData
from pspmonitor.services.snapshot import MetricsSnapshotReader
from pspmonitor.storage.base import StorageBackend

logger = structlog.get_logger()

# Trend baseline: the 24 hours immediately before the current window starts
BASELINE_WINDOW = timedelta(hours=24)


class MetricsService:
    """
    Computes PSP health views over time windows.

    Attributes:
        snapshots: Reader pairing storage aggregates with p95 samples
        evaluator: Threshold classifier
        scorer: Composite health scorer
        trend_analyzer: Current vs. baseline comparator
        default_window: Lookback used by default_time_range()
    """

    def __init__(
        self,
        storage: StorageBackend,
        thresholds: Optional[AlertThresholds] = None,
        default_window_minutes: int = 60,
    ):
        """
        Args:
            storage: Opened storage backend
            thresholds: Alert thresholds for the health evaluator
            default_window_minutes: Default lookback window length
        """
        self.snapshots = MetricsSnapshotReader(storage)
        self.evaluator = HealthEvaluator(thresholds)
        self.scorer = HealthScorer()
        self.trend_analyzer = TrendAnalyzer()
        self.default_window = timedelta(minutes=default_window_minutes)

    def default_time_range(self, now: Optional[datetime] = None) -> TimeRange:
        """
        Window ending now and spanning the default lookback.

        Args:
            now: Window end (defaults to the current UTC time)
        """
        end = now or datetime.now(timezone.utc)
        return TimeRange.ending_at(end, self.default_window)

    def evaluate(self, metrics: PSPMetrics) -> PSPHealth:
        """Classify one metrics record into a PSPHealth bundle."""
        evaluation = self.evaluator.evaluate(metrics)
        return PSPHealth(
            psp=metrics.psp,
            status=evaluation.status,
            metrics=metrics,
            alerts=evaluation.alerts,
        )

    def get_all_psp_health(self, time_range: TimeRange) -> list[PSPHealth]:
        """
        Health of every PSP with transactions in the window.

        Returns:
            One PSPHealth per PSP, ordered by PSP name
        """
        results = [self.evaluate(m) for m in self.snapshots.all_psps(time_range)]

        logger.info(
            "psp_health_computed",
            psp_count=len(results),
            window_from=time_range.start.isoformat(),
            window_to=time_range.end.isoformat(),
        )
        return results

    def get_psp_health(self, psp: str, time_range: TimeRange) -> Optional[PSPHealth]:
        """
        Health of one PSP.

        Returns:
            PSPHealth, or None when the PSP has no transactions in the window
        """
        metrics = self.snapshots.psp(psp, time_range)
        if metrics is None:
            logger.debug("psp_no_data", psp=psp)
            return None

        health = self.evaluate(metrics)
        logger.info(
            "psp_metrics_computed",
            psp=psp,
            status=health.status.value,
            alert_count=len(health.alerts),
        )
        return health

    def get_payment_method_breakdown(self, psp: str, time_range: TimeRange) -> list[PSPMetrics]:
        """
        Metrics for one PSP split by payment method.

        Returns:
            One PSPMetrics per payment method (empty when the PSP has no data)
        """
        return self.snapshots.by_payment_method(psp, time_range)

    def get_trends(self, psp: str, time_range: TimeRange) -> Optional[TrendData]:
        """
        Compare the current window with the 24 hours before it.

        A baseline window with no transactions is treated as all zeros.
        The baseline length does not depend on the current window, so a
        current window longer than 24 hours overlaps its own baseline.

        Returns:
            TrendData, or None when the PSP has no data in the current window
        """
        current = self.snapshots.psp(psp, time_range)
        if current is None:
            return None

        if time_range.duration > BASELINE_WINDOW:
            logger.warning(
                "baseline_overlaps_current_window",
                psp=psp,
                window_hours=round(time_range.duration.total_seconds() / 3600, 2),
            )

        baseline_range = time_range.preceding(BASELINE_WINDOW)
        baseline = self.snapshots.psp_or_empty(psp, baseline_range)

        trends = self.trend_analyzer.compare(current, baseline)

        logger.info(
            "psp_trends_computed",
            psp=psp,
            timeout_rate=trends.timeout_rate.direction.value,
            error_rate=trends.error_rate.direction.value,
            avg_response_time=trends.avg_response_time.direction.value,
            success_rate=trends.success_rate.direction.value,
        )

        return TrendData(
            psp=psp,
            current_window=current,
            baseline_window=baseline,
            trends=trends,
        )

    def get_health_scores(self, time_range: TimeRange) -> list[PSPHealthScore]:
        """
        Composite health score for every PSP with transactions in the window.

        Returns:
            One PSPHealthScore per PSP, ordered by PSP name
        """
        scores = []
        for metrics in self.snapshots.all_psps(time_range):
            evaluation = self.evaluator.evaluate(metrics)
            result = self.scorer.score(metrics)
            scores.append(
                PSPHealthScore(
                    psp=metrics.psp,
                    score=result.score,
                    status=evaluation.status,
                    breakdown=result.breakdown,
                )
            )

        logger.info("psp_health_scores_computed", psp_count=len(scores))
        return scores
