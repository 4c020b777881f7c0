"""
PSP metrics snapshots.

Pairs the two storage reads every metrics view needs (grouped counts, then
sorted response-time samples for the same population) and runs them through
the metrics builder. One method per scope: all PSPs, one PSP, one PSP by
payment method.

The two reads are separate statements. Transactions ingested between them
can make a record's p95 cover a slightly different population than its
counts; this is accepted, and no snapshot isolation is added on top of what
storage provides.
"""

from typing import Optional

from pspmonitor.engine.metrics_builder import build_psp_metrics, calculate_p95
from pspmonitor.models.metrics import AggregatedRow, PSPMetrics, TimeRange
from pspmonitor.storage.base import StorageBackend


class MetricsSnapshotReader:
    """
    Builds PSPMetrics records from storage for a time window.

    Attributes:
        storage: Storage backend to aggregate from
    """

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    def all_psps(self, time_range: TimeRange) -> list[PSPMetrics]:
        """Metrics for every PSP with transactions in the window."""
        return [
            self._build(row, time_range)
            for row in self.storage.aggregate_by_psp(time_range)
        ]

    def psp(self, psp: str, time_range: TimeRange) -> Optional[PSPMetrics]:
        """Metrics for one PSP, or None when it has no transactions in the window."""
        row = self.storage.aggregate_for_psp(psp, time_range)
        if row is None:
            return None
        return self._build(row, time_range)

    def psp_or_empty(self, psp: str, time_range: TimeRange) -> PSPMetrics:
        """Metrics for one PSP, all-zero when it has no transactions in the window."""
        row = self.storage.aggregate_for_psp(psp, time_range) or AggregatedRow.empty(psp)
        return self._build(row, time_range)

    def by_payment_method(self, psp: str, time_range: TimeRange) -> list[PSPMetrics]:
        """Metrics for one PSP, one record per payment method."""
        return [
            self._build(row, time_range)
            for row in self.storage.aggregate_by_payment_method(psp, time_range)
        ]

    def _build(self, row: AggregatedRow, time_range: TimeRange) -> PSPMetrics:
        samples = self.storage.response_times(
            row.psp, time_range, payment_method=row.payment_method
        )
        return build_psp_metrics(row, calculate_p95(samples), time_range)
