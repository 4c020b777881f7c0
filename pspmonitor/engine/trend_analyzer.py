"""
Trend Analyzer: Current vs. Baseline Window Comparison.

Compares a PSP's current-window metrics with a baseline window and classifies
each tracked dimension as improving, stable, or worsening. Changes smaller
than 5% either way are treated as noise and reported as stable.

Direction depends on what "better" means for a metric:
- timeout_rate, error_rate, avg_response_time: higher is worse, so a rise
  is worsening
- success_rate: higher is better, so a rise is improving

A zero baseline with a non-zero current value is pegged at a 100% change
instead of dividing by zero.

Version: trend_analyzer_v1
"""

from pspmonitor.models.enums import TrendDirectionKind
from pspmonitor.models.metrics import MetricTrends, PSPMetrics, TrendDirection
from pspmonitor.utils.rounding import round_half_away

STABLE_BAND_PERCENT = 5.0
PEGGED_CHANGE_PERCENT = 100.0


def _compare(current: float, baseline: float, higher_is_better: bool) -> TrendDirection:
    if baseline == 0 and current == 0:
        return TrendDirection(direction=TrendDirectionKind.STABLE, change_percent=0)

    rising = TrendDirectionKind.IMPROVING if higher_is_better else TrendDirectionKind.WORSENING
    falling = TrendDirectionKind.WORSENING if higher_is_better else TrendDirectionKind.IMPROVING

    if baseline == 0:
        return TrendDirection(direction=rising, change_percent=PEGGED_CHANGE_PERCENT)

    change_percent = round_half_away(((current - baseline) / baseline) * 100, 2)

    if abs(change_percent) < STABLE_BAND_PERCENT:
        return TrendDirection(direction=TrendDirectionKind.STABLE, change_percent=change_percent)

    return TrendDirection(
        direction=rising if change_percent > 0 else falling,
        change_percent=change_percent,
    )


def calculate_trend(current: float, baseline: float) -> TrendDirection:
    """
    Trend for a metric where higher values are worse.

    Args:
        current: Value in the current window
        baseline: Value in the baseline window

    Returns:
        TrendDirection; a rise of 5% or more is worsening

    Example:
        >>> calculate_trend(0.20, 0.10).direction
        <TrendDirectionKind.WORSENING: 'worsening'>
    """
    return _compare(current, baseline, higher_is_better=False)


def calculate_trend_for_success_rate(current: float, baseline: float) -> TrendDirection:
    """
    Trend for success rate, where higher values are better.

    Args:
        current: Success rate in the current window
        baseline: Success rate in the baseline window

    Returns:
        TrendDirection; a rise of 5% or more is improving
    """
    return _compare(current, baseline, higher_is_better=True)


class TrendAnalyzer:
    """
    Compares two metrics records for the same PSP.

    Each dimension is compared independently; the analyzer holds no state.

    Example:
        >>> trends = TrendAnalyzer().compare(current_metrics, baseline_metrics)
        >>> trends.timeout_rate.direction
    """

    def compare(self, current: PSPMetrics, baseline: PSPMetrics) -> MetricTrends:
        """
        Compute trends for timeout rate, error rate, mean response time and
        success rate.

        Args:
            current: Metrics for the current window
            baseline: Metrics for the baseline window

        Returns:
            MetricTrends with one TrendDirection per dimension
        """
        return MetricTrends(
            timeout_rate=calculate_trend(current.timeout_rate, baseline.timeout_rate),
            error_rate=calculate_trend(current.error_rate, baseline.error_rate),
            avg_response_time=calculate_trend(
                current.avg_response_time_ms, baseline.avg_response_time_ms
            ),
            success_rate=calculate_trend_for_success_rate(
                current.success_rate, baseline.success_rate
            ),
        )
