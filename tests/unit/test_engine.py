"""
Unit tests for the PSP health evaluation engine.

Covers the percentile estimator, metrics builder, health evaluator, trend
analyzer, health scorer, and the shared rounding helper. Every component
under test is pure, so tests build inputs with the conftest factories and
assert on the returned models directly.
"""

import pytest

from pspmonitor.engine.metrics_builder import build_psp_metrics, calculate_p95
from pspmonitor.engine.monitors import HealthEvaluator, HealthScorer, status_from_alerts
from pspmonitor.engine.monitors.health_evaluator import format_rate_bound, format_time_bound
from pspmonitor.engine.trend_analyzer import (
    TrendAnalyzer,
    calculate_trend,
    calculate_trend_for_success_rate,
)
from pspmonitor.models.alerts import AlertMessage, AlertThresholds, MetricThreshold
from pspmonitor.models.enums import AlertSeverity, HealthStatus, TrendDirectionKind
from pspmonitor.models.metrics import AggregatedRow
from pspmonitor.utils.rounding import round_half_away
from tests.conftest import TIME_RANGE, make_metrics, make_row


# ============================================================================
# Percentile Estimator Tests
# ============================================================================


class TestCalculateP95:
    """Test nearest-rank p95 over pre-sorted samples."""

    def test_p95_empty_returns_zero(self):
        assert calculate_p95([]) == 0

    def test_p95_single_element(self):
        assert calculate_p95([1234]) == 1234

    def test_p95_hundred_samples(self):
        """floor(0.95 * 100) = 95, the 96th sample."""
        assert calculate_p95(list(range(1, 101))) == 96

    def test_p95_twenty_samples_clamped_to_last(self):
        """floor(0.95 * 20) = 19 is the last index."""
        assert calculate_p95(list(range(1, 21))) == 20

    def test_p95_hundred_step_samples(self):
        assert calculate_p95(list(range(100, 2001, 100))) == 2000

    def test_p95_two_samples(self):
        assert calculate_p95([100, 900]) == 900

    def test_p95_ten_samples(self):
        """floor(9.5) = 9 -> last element."""
        assert calculate_p95([10, 20, 30, 40, 50, 60, 70, 80, 90, 100]) == 100

    def test_p95_does_not_sort(self):
        """Input order is trusted; the element at the index is returned as-is."""
        assert calculate_p95([5, 4, 3, 2, 1]) == 1


# ============================================================================
# Metrics Builder Tests
# ============================================================================


class TestBuildPSPMetrics:
    """Test aggregate row -> PSPMetrics normalization."""

    def test_build_rates_and_rounding(self):
        row = make_row(
            approved=80, declined=5, timeout=10, error=3, pending=2, avg_response_time=1500.456
        )
        metrics = build_psp_metrics(row, 3000, TIME_RANGE)

        assert metrics.total_transactions == 100
        assert metrics.timeout_rate == 0.1
        assert metrics.error_rate == 0.03
        # 80 / (100 - 10 - 3)
        assert metrics.success_rate == 0.9195
        assert metrics.avg_response_time_ms == 1500.46
        assert metrics.p95_response_time_ms == 3000

    def test_build_copies_counts_and_window(self):
        row = make_row(approved=7, declined=1, timeout=1, error=1, pending=0)
        metrics = build_psp_metrics(row, 0, TIME_RANGE)

        assert metrics.psp == "Paystack"
        assert metrics.payment_method is None
        assert metrics.approved_count == 7
        assert metrics.declined_count == 1
        assert metrics.timeout_count == 1
        assert metrics.error_count == 1
        assert metrics.pending_count == 0
        assert metrics.time_window == TIME_RANGE

    def test_build_keeps_payment_method(self):
        row = make_row(payment_method="mpesa")
        assert build_psp_metrics(row, 0, TIME_RANGE).payment_method == "mpesa"

    def test_build_zero_total_gives_zero_rates(self):
        metrics = build_psp_metrics(AggregatedRow.empty("Ozow"), 0, TIME_RANGE)

        assert metrics.total_transactions == 0
        assert metrics.timeout_rate == 0
        assert metrics.error_rate == 0
        assert metrics.success_rate == 0
        assert metrics.avg_response_time_ms == 0
        assert metrics.p95_response_time_ms == 0

    def test_build_all_timeouts_success_rate_zero(self):
        """No completed transactions -> success rate 0, not a division error."""
        row = make_row(approved=0, declined=0, timeout=5, error=0, pending=0, avg_response_time=30000)
        metrics = build_psp_metrics(row, 30000, TIME_RANGE)

        assert metrics.timeout_rate == 1.0
        assert metrics.success_rate == 0

    def test_build_success_rate_excludes_timeouts_and_errors(self):
        row = make_row(approved=45, declined=5, timeout=40, error=10, pending=0)
        metrics = build_psp_metrics(row, 0, TIME_RANGE)

        assert metrics.success_rate == 0.9

    def test_build_repeating_fraction_rounded_to_four_decimals(self):
        row = make_row(approved=1, declined=0, timeout=1, error=0, pending=1)
        metrics = build_psp_metrics(row, 0, TIME_RANGE)

        assert metrics.timeout_rate == 0.3333
        assert metrics.success_rate == 0.5

    def test_build_p95_passed_through_unrounded(self):
        metrics = build_psp_metrics(make_row(), 1234.5678, TIME_RANGE)
        assert metrics.p95_response_time_ms == 1234.5678


# ============================================================================
# Health Evaluator Tests
# ============================================================================


class TestHealthEvaluator:
    """Test two-tier threshold classification."""

    def test_evaluator_healthy_no_alerts(self):
        result = HealthEvaluator().evaluate(make_metrics())
        assert result.status == HealthStatus.HEALTHY
        assert result.alerts == []

    def test_evaluator_timeout_at_unhealthy_bound_is_degraded(self):
        """Strict '>' semantics: exactly 0.15 does not breach the critical tier."""
        result = HealthEvaluator().evaluate(make_metrics(timeout_rate=0.15))

        assert result.status == HealthStatus.DEGRADED
        assert len(result.alerts) == 1
        assert result.alerts[0].severity == AlertSeverity.WARNING
        assert result.alerts[0].threshold == "> 12%"

    def test_evaluator_timeout_at_degraded_bound_is_healthy(self):
        result = HealthEvaluator().evaluate(make_metrics(timeout_rate=0.12))
        assert result.status == HealthStatus.HEALTHY
        assert result.alerts == []

    def test_evaluator_timeout_above_unhealthy_single_critical(self):
        """Critical suppresses the warning for the same metric."""
        result = HealthEvaluator().evaluate(make_metrics(timeout_rate=0.20))

        assert result.status == HealthStatus.UNHEALTHY
        assert len(result.alerts) == 1
        alert = result.alerts[0]
        assert alert.metric == "timeout_rate"
        assert alert.severity == AlertSeverity.CRITICAL
        assert alert.threshold == "> 15%"
        assert alert.current_value == 0.20

    def test_evaluator_three_breaches_in_fixed_order(self):
        metrics = make_metrics(timeout_rate=0.20, error_rate=0.12, avg_response_time_ms=25000)
        result = HealthEvaluator().evaluate(metrics)

        assert result.status == HealthStatus.UNHEALTHY
        assert [a.metric for a in result.alerts] == [
            "timeout_rate",
            "avg_response_time_ms",
            "error_rate",
        ]
        assert all(a.severity == AlertSeverity.CRITICAL for a in result.alerts)

    def test_evaluator_worst_severity_wins(self):
        metrics = make_metrics(timeout_rate=0.13, error_rate=0.11)
        result = HealthEvaluator().evaluate(metrics)

        assert result.status == HealthStatus.UNHEALTHY
        assert [a.severity for a in result.alerts] == [
            AlertSeverity.WARNING,
            AlertSeverity.CRITICAL,
        ]

    def test_evaluator_response_time_thresholds(self):
        evaluator = HealthEvaluator()

        at_bound = evaluator.evaluate(make_metrics(avg_response_time_ms=20000))
        assert at_bound.status == HealthStatus.DEGRADED
        assert at_bound.alerts[0].threshold == "> 16000ms"

        above = evaluator.evaluate(make_metrics(avg_response_time_ms=20000.01))
        assert above.status == HealthStatus.UNHEALTHY
        assert above.alerts[0].threshold == "> 20000ms"

    def test_evaluator_error_rate_warning(self):
        result = HealthEvaluator().evaluate(make_metrics(error_rate=0.09))

        assert result.status == HealthStatus.DEGRADED
        assert result.alerts[0].metric == "error_rate"
        assert result.alerts[0].threshold == "> 8%"

    def test_evaluator_custom_thresholds(self):
        thresholds = AlertThresholds(
            timeout_rate=MetricThreshold(degraded=0.01, unhealthy=0.02),
        )
        result = HealthEvaluator(thresholds).evaluate(make_metrics(timeout_rate=0.03))

        assert result.status == HealthStatus.UNHEALTHY
        assert result.alerts[0].threshold == "> 2%"

    def test_evaluator_describe_thresholds_defaults(self):
        assert HealthEvaluator().describe_thresholds() == {
            "timeout_rate": {"unhealthy": "> 15%", "degraded": "> 12%"},
            "avg_response_time_ms": {"unhealthy": "> 20000ms", "degraded": "> 16000ms"},
            "error_rate": {"unhealthy": "> 10%", "degraded": "> 8%"},
        }

    def test_format_bounds(self):
        assert format_rate_bound(0.125) == "> 12.5%"
        assert format_time_bound(1500.5) == "> 1500.5ms"

    def test_status_from_alerts(self):
        warning = AlertMessage(
            metric="error_rate", threshold="> 8%", current_value=0.09, severity=AlertSeverity.WARNING
        )
        critical = AlertMessage(
            metric="timeout_rate", threshold="> 15%", current_value=0.2, severity=AlertSeverity.CRITICAL
        )

        assert status_from_alerts([]) == HealthStatus.HEALTHY
        assert status_from_alerts([warning]) == HealthStatus.DEGRADED
        assert status_from_alerts([warning, critical]) == HealthStatus.UNHEALTHY

    def test_threshold_tier_order_validated(self):
        with pytest.raises(ValueError):
            MetricThreshold(degraded=0.2, unhealthy=0.1)


# ============================================================================
# Trend Analyzer Tests
# ============================================================================


class TestCalculateTrend:
    """Test trend classification for higher-is-worse metrics."""

    def test_trend_both_zero_stable(self):
        trend = calculate_trend(0, 0)
        assert trend.direction == TrendDirectionKind.STABLE
        assert trend.change_percent == 0

    def test_trend_zero_baseline_pegged_worsening(self):
        trend = calculate_trend(0.1, 0)
        assert trend.direction == TrendDirectionKind.WORSENING
        assert trend.change_percent == 100

    def test_trend_within_band_stable(self):
        trend = calculate_trend(1.02, 1.0)
        assert trend.direction == TrendDirectionKind.STABLE
        assert trend.change_percent == 2.0

    def test_trend_doubling_worsening(self):
        trend = calculate_trend(0.20, 0.10)
        assert trend.direction == TrendDirectionKind.WORSENING
        assert trend.change_percent == 100

    def test_trend_halving_improving(self):
        trend = calculate_trend(0.05, 0.10)
        assert trend.direction == TrendDirectionKind.IMPROVING
        assert trend.change_percent == -50

    def test_trend_exactly_five_percent_not_stable(self):
        assert calculate_trend(1.05, 1.0).direction == TrendDirectionKind.WORSENING
        assert calculate_trend(0.95, 1.0).direction == TrendDirectionKind.IMPROVING

    def test_trend_change_rounded_to_two_decimals(self):
        assert calculate_trend(4, 3).change_percent == 33.33


class TestCalculateTrendForSuccessRate:
    """Test trend classification where higher is better."""

    def test_success_rise_improving(self):
        trend = calculate_trend_for_success_rate(0.95, 0.80)
        assert trend.direction == TrendDirectionKind.IMPROVING
        assert trend.change_percent == 18.75

    def test_same_change_on_rate_metric_worsening(self):
        trend = calculate_trend(0.95, 0.80)
        assert trend.direction == TrendDirectionKind.WORSENING
        assert trend.change_percent == 18.75

    def test_success_drop_worsening(self):
        trend = calculate_trend_for_success_rate(0, 0.5)
        assert trend.direction == TrendDirectionKind.WORSENING
        assert trend.change_percent == -100

    def test_success_zero_baseline_pegged_improving(self):
        trend = calculate_trend_for_success_rate(0.5, 0)
        assert trend.direction == TrendDirectionKind.IMPROVING
        assert trend.change_percent == 100

    def test_success_both_zero_stable(self):
        assert calculate_trend_for_success_rate(0, 0).direction == TrendDirectionKind.STABLE


class TestTrendAnalyzer:
    """Test four-dimension comparison of metrics records."""

    def test_compare_degrading_psp(self):
        current = make_metrics(
            timeout_rate=0.22, error_rate=0.05, success_rate=0.80, avg_response_time_ms=4000
        )
        baseline = make_metrics(
            timeout_rate=0.02, error_rate=0.05, success_rate=0.95, avg_response_time_ms=2000
        )
        trends = TrendAnalyzer().compare(current, baseline)

        assert trends.timeout_rate.direction == TrendDirectionKind.WORSENING
        assert trends.error_rate.direction == TrendDirectionKind.STABLE
        assert trends.avg_response_time.direction == TrendDirectionKind.WORSENING
        assert trends.avg_response_time.change_percent == 100
        assert trends.success_rate.direction == TrendDirectionKind.WORSENING

    def test_compare_against_empty_baseline(self):
        current = make_metrics(timeout_rate=0.1, error_rate=0, success_rate=0.9)
        baseline = make_metrics(
            timeout_rate=0, error_rate=0, success_rate=0, avg_response_time_ms=0, total_transactions=0
        )
        trends = TrendAnalyzer().compare(current, baseline)

        assert trends.timeout_rate.direction == TrendDirectionKind.WORSENING
        assert trends.timeout_rate.change_percent == 100
        assert trends.error_rate.direction == TrendDirectionKind.STABLE
        assert trends.error_rate.change_percent == 0
        assert trends.success_rate.direction == TrendDirectionKind.IMPROVING


# ============================================================================
# Health Scorer Tests
# ============================================================================


class TestHealthScorer:
    """Test weighted 0-100 composite scoring."""

    def test_score_perfect_psp(self):
        metrics = make_metrics(timeout_rate=0, error_rate=0, success_rate=1.0, avg_response_time_ms=150)
        result = HealthScorer().score(metrics)

        assert 99 < result.score <= 100
        assert result.breakdown.timeout_component == 30
        assert result.breakdown.error_component == 30
        assert result.breakdown.success_component == 20
        assert result.breakdown.response_time_component == 19.9

    def test_score_weighted_sum(self):
        metrics = make_metrics(
            timeout_rate=0.1, error_rate=0.05, success_rate=0.9, avg_response_time_ms=15000
        )
        result = HealthScorer().score(metrics)

        assert result.score == pytest.approx(83.5)
        assert result.breakdown.timeout_component == pytest.approx(27.0)
        assert result.breakdown.error_component == pytest.approx(28.5)
        assert result.breakdown.success_component == pytest.approx(18.0)
        assert result.breakdown.response_time_component == pytest.approx(10.0)

    def test_score_all_timeouts(self):
        metrics = make_metrics(
            timeout_rate=1.0, error_rate=0, success_rate=0, avg_response_time_ms=30000
        )
        result = HealthScorer().score(metrics)

        assert result.breakdown.timeout_component == 0
        assert result.breakdown.success_component == 0
        assert result.breakdown.response_time_component == 0
        assert 0 <= result.score <= 100

    def test_score_response_time_component_floors_at_zero(self):
        metrics = make_metrics(avg_response_time_ms=90000)
        assert HealthScorer().score(metrics).breakdown.response_time_component == 0

    def test_score_rounded_to_one_decimal(self):
        metrics = make_metrics(
            timeout_rate=0.0123, error_rate=0.0456, success_rate=0.9321, avg_response_time_ms=1234.56
        )
        score = HealthScorer().score(metrics).score
        assert score == round_half_away(score, 1)


# ============================================================================
# Rounding Tests
# ============================================================================


class TestRoundHalfAway:
    """Test decimal rounding with ties away from zero."""

    def test_ties_round_up(self):
        assert round_half_away(0.125, 2) == 0.13
        assert round_half_away(2.675, 2) == 2.68

    def test_ties_round_away_from_zero_for_negatives(self):
        assert round_half_away(-2.5, 0) == -3.0
        assert round_half_away(-0.125, 2) == -0.13

    def test_small_rate(self):
        assert round_half_away(0.00005, 4) == 0.0001

    def test_integers_unchanged(self):
        assert round_half_away(100, 1) == 100.0
