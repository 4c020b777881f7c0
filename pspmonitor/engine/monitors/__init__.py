"""
PSP Monitor Engine.

This module provides threshold-based health classification and composite
health scoring for payment service providers.

Components:
    HealthEvaluator: Classifies metrics into healthy/degraded/unhealthy with alerts
    HealthScorer: Computes a weighted 0-100 health score with breakdown

Example:
    >>> from pspmonitor.engine.monitors import HealthEvaluator, HealthScorer
    >>> evaluation = HealthEvaluator(thresholds).evaluate(metrics)
    >>> score = HealthScorer().score(metrics)
"""

from .health_evaluator import HealthEvaluator, status_from_alerts
from .health_scorer import HealthScorer

__all__ = [
    "HealthEvaluator",
    "HealthScorer",
    "status_from_alerts",
]
