"""
Abstract storage interface for the PSP health monitor.

This module defines the storage abstraction that the metrics services read
aggregates from and the ingestion service writes transactions to. The
evaluation engine never talks to storage directly: services fetch raw counts
and sorted response-time samples here and hand them to the pure engine.

Reads are independent statements with no snapshot spanning them. A request
that reads counts and then samples may see transactions written in between;
the resulting skew between a window's counts and its p95 population is an
accepted trade-off.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pspmonitor.models.metrics import AggregatedRow, TimeRange
from pspmonitor.models.transactions import TransactionIn


class StorageBackend(ABC):
    """
    Abstract base class for transaction storage.

    Lifecycle is owned by the caller: construct, ``open()`` at startup,
    ``close()`` at shutdown. Implementations must be safe to call from
    multiple threads once opened.
    """

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @abstractmethod
    def open(self) -> None:
        """
        Open the underlying connection and ensure the schema exists.

        Raises:
            StorageError: If the connection cannot be established
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying connection. Safe to call twice."""
        pass

    # =========================================================================
    # Transactions - Writes
    # =========================================================================

    @abstractmethod
    def insert_transaction(self, transaction: TransactionIn) -> None:
        """
        Insert a single transaction.

        Args:
            transaction: Validated transaction

        Raises:
            DuplicateTransactionError: If the transaction id already exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def insert_transactions(self, transactions: list[TransactionIn]) -> tuple[int, list[str]]:
        """
        Insert a batch of transactions atomically, skipping duplicate ids.

        Args:
            transactions: Validated transactions

        Returns:
            Tuple of (number inserted, per-transaction error messages)

        Raises:
            StorageError: If the batch cannot be written
        """
        pass

    # =========================================================================
    # Transactions - Aggregates
    # =========================================================================

    @abstractmethod
    def aggregate_by_psp(self, time_range: TimeRange) -> list[AggregatedRow]:
        """
        Aggregate counts and mean response time for every PSP in a window.

        Args:
            time_range: Window to aggregate over (inclusive bounds)

        Returns:
            One row per PSP that has transactions in the window
        """
        pass

    @abstractmethod
    def aggregate_for_psp(self, psp: str, time_range: TimeRange) -> Optional[AggregatedRow]:
        """
        Aggregate counts and mean response time for one PSP.

        Args:
            psp: PSP name
            time_range: Window to aggregate over

        Returns:
            AggregatedRow, or None if the PSP has no transactions in the window
        """
        pass

    @abstractmethod
    def aggregate_by_payment_method(
        self, psp: str, time_range: TimeRange
    ) -> list[AggregatedRow]:
        """
        Aggregate counts for one PSP grouped by payment method.

        Args:
            psp: PSP name
            time_range: Window to aggregate over

        Returns:
            One row per payment method, with ``payment_method`` set
        """
        pass

    @abstractmethod
    def response_times(
        self,
        psp: str,
        time_range: TimeRange,
        payment_method: Optional[str] = None,
    ) -> list[float]:
        """
        Response-time samples for a PSP, sorted ascending.

        Args:
            psp: PSP name
            time_range: Window to read
            payment_method: Optional payment method filter

        Returns:
            Response times in milliseconds, ascending
        """
        pass

    # =========================================================================
    # Diagnostics
    # =========================================================================

    @abstractmethod
    def count_transactions(self) -> int:
        """Total number of stored transactions."""
        pass

    @abstractmethod
    def distinct_psps(self) -> list[str]:
        """All PSP names seen, sorted."""
        pass
