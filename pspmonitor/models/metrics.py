"""
Metric models for the PSP health monitor.

This module defines the time window, raw aggregate, and derived metric
structures that flow through the evaluation engine. Every model is frozen:
a metrics record is built once per (PSP, window) pair and never mutated.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import HealthStatus, TrendDirectionKind

EARLIEST_UTC = datetime.min.replace(tzinfo=timezone.utc)


def check_utc_range(value: datetime) -> datetime:
    """
    Reject aware timestamps whose UTC equivalent falls outside the datetime range.

    Raises:
        ValueError: If converting to UTC overflows
    """
    try:
        value.astimezone(timezone.utc)
    except OverflowError:
        raise ValueError("timestamp is out of range when converted to UTC")
    return value


def shift_back(value: datetime, length: timedelta) -> datetime:
    """``value - length``, clamped to the earliest representable UTC instant."""
    try:
        shifted = value - length
    except OverflowError:
        return EARLIEST_UTC
    return max(shifted, EARLIEST_UTC)


class TimeRange(BaseModel):
    """
    Closed time window a query or metrics record covers.

    Serialized with the keys ``from`` and ``to``; both timestamps must carry
    a UTC offset.

    Attributes:
        start: Inclusive lower bound (alias ``from``)
        end: Inclusive upper bound (alias ``to``)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start: AwareDatetime = Field(alias="from", description="Window start (inclusive)")
    end: AwareDatetime = Field(alias="to", description="Window end (inclusive)")

    @field_validator("start", "end")
    @classmethod
    def validate_utc_range(cls, v: datetime) -> datetime:
        """Both bounds must be convertible to UTC for storage queries."""
        return check_utc_range(v)

    @model_validator(mode="after")
    def validate_ordering(self) -> "TimeRange":
        """Ensure the window does not run backwards."""
        if self.start > self.end:
            raise ValueError("'from' must not be later than 'to'")
        return self

    @property
    def duration(self) -> timedelta:
        """Length of the window."""
        return self.end - self.start

    def preceding(self, length: timedelta) -> "TimeRange":
        """
        Window of the given length that ends where this window starts.

        Args:
            length: Length of the preceding window

        Returns:
            New TimeRange ``[start - length, start]``, truncated at the
            earliest representable instant
        """
        return TimeRange(start=shift_back(self.start, length), end=self.start)

    @classmethod
    def ending_at(cls, end: datetime, length: timedelta) -> "TimeRange":
        """
        Window of the given length ending at ``end``.

        Windows reaching back past the earliest representable instant are
        truncated there.
        """
        return cls(start=shift_back(end, length), end=end)


class AggregatedRow(BaseModel):
    """
    Raw per-PSP counts over one time window, as produced by storage.

    Attributes:
        psp: PSP name
        payment_method: Payment method, when grouped by method
        total: Transactions in the window
        approved: Approved transactions
        declined: Declined transactions
        timeout: Timed-out transactions
        error: Errored transactions
        pending: Pending transactions
        avg_response_time: Mean response time in milliseconds (0 when total is 0)
    """

    model_config = ConfigDict(frozen=True)

    psp: str
    payment_method: Optional[str] = None
    total: int = Field(ge=0)
    approved: int = Field(ge=0)
    declined: int = Field(ge=0)
    timeout: int = Field(ge=0)
    error: int = Field(ge=0)
    pending: int = Field(ge=0)
    avg_response_time: float = Field(ge=0)

    @classmethod
    def empty(cls, psp: str, payment_method: Optional[str] = None) -> "AggregatedRow":
        """All-zero row, used when a window holds no transactions for a PSP."""
        return cls(
            psp=psp,
            payment_method=payment_method,
            total=0,
            approved=0,
            declined=0,
            timeout=0,
            error=0,
            pending=0,
            avg_response_time=0,
        )


class PSPMetrics(BaseModel):
    """
    Normalized health metrics for one PSP (optionally one payment method)
    over one time window.

    Rates are rounded to 4 decimals and times to 2 decimals. ``success_rate``
    is computed over transactions that reached approved, declined or pending,
    i.e. ``total - timeout - error``.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "psp": "Paystack",
                "payment_method": None,
                "total_transactions": 100,
                "approved_count": 80,
                "declined_count": 5,
                "timeout_count": 10,
                "error_count": 3,
                "pending_count": 2,
                "timeout_rate": 0.1,
                "error_rate": 0.03,
                "success_rate": 0.9195,
                "avg_response_time_ms": 1500.5,
                "p95_response_time_ms": 3000,
                "time_window": {
                    "from": "2025-01-15T00:00:00Z",
                    "to": "2025-01-15T01:00:00Z",
                },
            }
        },
    )

    psp: str
    payment_method: Optional[str] = None
    total_transactions: int = Field(ge=0)
    approved_count: int = Field(ge=0)
    declined_count: int = Field(ge=0)
    timeout_count: int = Field(ge=0)
    error_count: int = Field(ge=0)
    pending_count: int = Field(ge=0)
    timeout_rate: float = Field(ge=0.0, le=1.0)
    error_rate: float = Field(ge=0.0, le=1.0)
    success_rate: float = Field(ge=0.0, le=1.0)
    avg_response_time_ms: float = Field(ge=0.0)
    p95_response_time_ms: float = Field(ge=0.0)
    time_window: TimeRange


class TrendDirection(BaseModel):
    """Direction and relative change of one metric versus its baseline."""

    model_config = ConfigDict(frozen=True)

    direction: TrendDirectionKind
    change_percent: float


class MetricTrends(BaseModel):
    """Independent trend comparisons for the four tracked dimensions."""

    model_config = ConfigDict(frozen=True)

    timeout_rate: TrendDirection
    error_rate: TrendDirection
    avg_response_time: TrendDirection
    success_rate: TrendDirection


class TrendData(BaseModel):
    """Current and baseline metrics for a PSP with per-dimension trends."""

    model_config = ConfigDict(frozen=True)

    psp: str
    current_window: PSPMetrics
    baseline_window: PSPMetrics
    trends: MetricTrends


class ScoreBreakdown(BaseModel):
    """Weighted components of a health score, each rounded to 2 decimals."""

    model_config = ConfigDict(frozen=True)

    timeout_component: float
    error_component: float
    success_component: float
    response_time_component: float


class HealthScore(BaseModel):
    """Composite 0-100 score and its breakdown."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=100.0)
    breakdown: ScoreBreakdown


class PSPHealthScore(BaseModel):
    """Health score report for one PSP."""

    model_config = ConfigDict(frozen=True)

    psp: str
    score: float = Field(ge=0.0, le=100.0)
    status: HealthStatus
    breakdown: ScoreBreakdown
