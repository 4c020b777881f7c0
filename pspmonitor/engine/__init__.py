"""
PSP health evaluation engine.

This package contains the pure computations that turn raw aggregate counts
and response-time samples into health metrics, status, trends and scores:

- Metrics building: aggregate row + p95 -> normalized PSPMetrics
- Health evaluation: threshold classification with alerts
- Trend analysis: current vs. baseline window comparison
- Health scoring: weighted 0-100 composite score

All engine components are free of I/O and shared state, so they are safe to
call concurrently from any number of request handlers.
"""

__version__ = "1.0.0"

from pspmonitor.engine.metrics_builder import build_psp_metrics, calculate_p95
from pspmonitor.engine.monitors import HealthEvaluator, HealthScorer
from pspmonitor.engine.trend_analyzer import (
    TrendAnalyzer,
    calculate_trend,
    calculate_trend_for_success_rate,
)

__all__ = [
    "HealthEvaluator",
    "HealthScorer",
    "TrendAnalyzer",
    "build_psp_metrics",
    "calculate_p95",
    "calculate_trend",
    "calculate_trend_for_success_rate",
]
