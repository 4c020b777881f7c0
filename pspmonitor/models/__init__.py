"""
Pydantic v2 data models for the PSP health monitor.

Model Organization:
    - enums: Enumeration types for consistent classification
    - metrics: Time windows, raw aggregates, derived metrics, trends, scores
    - alerts: Thresholds, alert messages, and evaluation bundles
    - transactions: Ingestion request and result models

Usage:
    >>> from pspmonitor.models import AggregatedRow, TimeRange
    >>> row = AggregatedRow.empty("Paystack")
"""

# Enumerations
from .enums import AlertSeverity, HealthStatus, TransactionStatus, TrendDirectionKind

# Metric models
from .metrics import (
    AggregatedRow,
    HealthScore,
    MetricTrends,
    PSPHealthScore,
    PSPMetrics,
    ScoreBreakdown,
    TimeRange,
    TrendData,
    TrendDirection,
)

# Alert models
from .alerts import (
    AlertMessage,
    AlertSummary,
    AlertThresholds,
    HealthEvaluation,
    MetricThreshold,
    PSPHealth,
)

# Transaction models
from .transactions import (
    BulkIngestResult,
    BulkTransactionRequest,
    IngestResult,
    TransactionIn,
)

__all__ = [
    # Enumerations
    "AlertSeverity",
    "HealthStatus",
    "TransactionStatus",
    "TrendDirectionKind",
    # Metrics
    "AggregatedRow",
    "HealthScore",
    "MetricTrends",
    "PSPHealthScore",
    "PSPMetrics",
    "ScoreBreakdown",
    "TimeRange",
    "TrendData",
    "TrendDirection",
    # Alerts
    "AlertMessage",
    "AlertSummary",
    "AlertThresholds",
    "HealthEvaluation",
    "MetricThreshold",
    "PSPHealth",
    # Transactions
    "BulkIngestResult",
    "BulkTransactionRequest",
    "IngestResult",
    "TransactionIn",
]
