"""
Enumeration types for the PSP health monitor.

This module defines all enum types used across the system for type safety
and consistent validation. All enums inherit from str to ensure JSON
serialization compatibility.
"""

from enum import Enum


class TransactionStatus(str, Enum):
    """
    Terminal or in-flight outcome reported for a single PSP transaction.

    The five values are closed: aggregate rows count every transaction into
    exactly one of these buckets.
    """

    APPROVED = "approved"
    DECLINED = "declined"
    PENDING = "pending"
    TIMEOUT = "timeout"
    ERROR = "error"


class HealthStatus(str, Enum):
    """
    Discrete health classification of a PSP over a time window.

    Derived solely from the worst alert severity raised by the health
    evaluator.
    """

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class AlertSeverity(str, Enum):
    """Severity of a single threshold breach."""

    WARNING = "warning"
    CRITICAL = "critical"


class TrendDirectionKind(str, Enum):
    """
    Direction of a metric between a baseline window and the current window.

    Interpreted from the point of view of PSP health, so a falling timeout
    rate and a rising success rate are both "improving".
    """

    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"
