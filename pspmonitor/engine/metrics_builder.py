"""
Metrics Builder: Raw Aggregates to Normalized PSP Metrics.

Converts a storage aggregate row and a pre-computed p95 response time into
a PSPMetrics record for a stated time window. Rates are published with
exactly 4 decimals and times with 2 decimals; callers and dashboards rely on
that precision.

Both functions are pure: no I/O, no logging, no state.

Version: metrics_builder_v1
"""

from typing import Sequence

from pspmonitor.models.metrics import AggregatedRow, PSPMetrics, TimeRange
from pspmonitor.utils.rounding import round_half_away

P95_QUANTILE = 0.95
RATE_DECIMALS = 4
TIME_DECIMALS = 2


def calculate_p95(sorted_values: Sequence[float]) -> float:
    """
    Nearest-rank 95th percentile of ascending-sorted samples.

    The index is ``floor(0.95 * n)`` clamped to ``n - 1``. The input is
    trusted to be sorted; storage returns samples ordered ascending.

    Args:
        sorted_values: Response times in milliseconds, ascending

    Returns:
        The sample at the p95 index, or 0 for an empty sequence

    Example:
        >>> calculate_p95(list(range(1, 101)))
        96
    """
    n = len(sorted_values)
    if n == 0:
        return 0
    index = min(int(P95_QUANTILE * n), n - 1)
    return sorted_values[index]


def build_psp_metrics(
    row: AggregatedRow,
    p95: float,
    time_range: TimeRange,
) -> PSPMetrics:
    """
    Build a normalized metrics record from one aggregate row.

    Computation:
    - timeout_rate = timeout / total (0 when total is 0)
    - error_rate = error / total (0 when total is 0)
    - success_rate = approved / (total - timeout - error) (0 when that is 0)
    - avg_response_time_ms = avg_response_time rounded to 2 decimals
    - p95_response_time_ms = p95, unmodified

    Args:
        row: Raw counts for one PSP (or PSP and payment method)
        p95: 95th percentile response time for the same population
        time_range: Window the row was aggregated over

    Returns:
        PSPMetrics for the row and window
    """
    total = row.total
    completed = total - row.timeout - row.error

    timeout_rate = round_half_away(row.timeout / total, RATE_DECIMALS) if total > 0 else 0
    error_rate = round_half_away(row.error / total, RATE_DECIMALS) if total > 0 else 0
    success_rate = (
        round_half_away(row.approved / completed, RATE_DECIMALS) if completed > 0 else 0
    )

    return PSPMetrics(
        psp=row.psp,
        payment_method=row.payment_method,
        total_transactions=total,
        approved_count=row.approved,
        declined_count=row.declined,
        timeout_count=row.timeout,
        error_count=row.error,
        pending_count=row.pending,
        timeout_rate=timeout_rate,
        error_rate=error_rate,
        success_rate=success_rate,
        avg_response_time_ms=round_half_away(row.avg_response_time, TIME_DECIMALS),
        p95_response_time_ms=p95,
        time_window=time_range,
    )
