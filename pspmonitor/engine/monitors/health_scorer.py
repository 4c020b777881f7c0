"""
Health Scorer: Composite PSP Health Score.

Computes a continuous 0-100 health signal from a PSPMetrics record. Unlike
the health evaluator, which emits discrete alerts against configurable
thresholds, the scorer uses fixed weights and a fixed normalization
constant:

    timeout_component       = (1 - timeout_rate) * 30
    error_component         = (1 - error_rate) * 30
    success_component       = success_rate * 20
    response_time_component = max(0, 1 - avg_response_time_ms / 30000) * 20

The total is rounded to 1 decimal and clamped to [0, 100]. Components are
reported rounded to 2 decimals.

Version: health_scorer_v2
"""

from pspmonitor.models.metrics import HealthScore, PSPMetrics, ScoreBreakdown
from pspmonitor.utils.rounding import round_half_away

# ============================================================================
# Score weights are fixed constants, not thresholds
# ============================================================================

COMPONENT_WEIGHTS = {
    "timeout": 30,
    "error": 30,
    "success": 20,
    "response_time": 20,
}

# Mean response time at which the response-time component reaches zero
RESPONSE_TIME_CEILING_MS = 30000

SCORE_MIN = 0.0
SCORE_MAX = 100.0


class HealthScorer:
    """
    Computes weighted health scores for PSP metrics.

    Stateless; a single instance can be shared across threads and requests.

    Example:
        >>> scorer = HealthScorer()
        >>> result = scorer.score(metrics)
        >>> print(f"{metrics.psp}: {result.score}/100")
    """

    def score(self, metrics: PSPMetrics) -> HealthScore:
        """
        Score one metrics record.

        Args:
            metrics: Metrics for a single PSP and window

        Returns:
            HealthScore with the clamped total and the component breakdown
        """
        timeout_component = (1 - metrics.timeout_rate) * COMPONENT_WEIGHTS["timeout"]
        error_component = (1 - metrics.error_rate) * COMPONENT_WEIGHTS["error"]
        success_component = metrics.success_rate * COMPONENT_WEIGHTS["success"]
        response_time_factor = max(
            0.0, 1 - metrics.avg_response_time_ms / RESPONSE_TIME_CEILING_MS
        )
        response_time_component = response_time_factor * COMPONENT_WEIGHTS["response_time"]

        total = round_half_away(
            timeout_component + error_component + success_component + response_time_component,
            1,
        )

        return HealthScore(
            score=max(SCORE_MIN, min(SCORE_MAX, total)),
            breakdown=ScoreBreakdown(
                timeout_component=round_half_away(timeout_component, 2),
                error_component=round_half_away(error_component, 2),
                success_component=round_half_away(success_component, 2),
                response_time_component=round_half_away(response_time_component, 2),
            ),
        )
