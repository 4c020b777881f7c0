"""
Pytest configuration and shared fixtures for the PSP health monitor test suite.

Provides model factories, an in-memory storage double, and application
fixtures reused across unit, property-based and integration tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from pspmonitor.config import Settings
from pspmonitor.models.enums import TransactionStatus
from pspmonitor.models.metrics import AggregatedRow, PSPMetrics, TimeRange
from pspmonitor.models.transactions import TransactionIn
from pspmonitor.storage.base import StorageBackend
from pspmonitor.storage.duckdb_storage import MEMORY_DB, DuckDBStorage
from pspmonitor.storage.exceptions import DuplicateTransactionError


# ---------------------------------------------------------------------------
# Pydantic model factories: reusable across all test suites
# ---------------------------------------------------------------------------

WINDOW_END = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
TIME_RANGE = TimeRange(start=WINDOW_END - timedelta(hours=1), end=WINDOW_END)


def make_row(
    psp: str = "Paystack",
    approved: int = 90,
    declined: int = 5,
    timeout: int = 3,
    error: int = 2,
    pending: int = 0,
    avg_response_time: float = 1500.0,
    **overrides,
) -> AggregatedRow:
    """Factory function for creating test AggregatedRow objects. Total is derived."""
    defaults = dict(
        psp=psp,
        payment_method=None,
        total=approved + declined + timeout + error + pending,
        approved=approved,
        declined=declined,
        timeout=timeout,
        error=error,
        pending=pending,
        avg_response_time=avg_response_time,
    )
    defaults.update(overrides)
    return AggregatedRow(**defaults)


def make_metrics(
    psp: str = "Paystack",
    timeout_rate: float = 0.03,
    error_rate: float = 0.02,
    success_rate: float = 0.9474,
    avg_response_time_ms: float = 1500.0,
    total_transactions: int = 100,
    **overrides,
) -> PSPMetrics:
    """
    Factory function for creating test PSPMetrics objects.

    Counts are not reconciled with rates; engine components only read the
    rate and time fields.
    """
    defaults = dict(
        psp=psp,
        payment_method=None,
        total_transactions=total_transactions,
        approved_count=90,
        declined_count=5,
        timeout_count=3,
        error_count=2,
        pending_count=0,
        timeout_rate=timeout_rate,
        error_rate=error_rate,
        success_rate=success_rate,
        avg_response_time_ms=avg_response_time_ms,
        p95_response_time_ms=3000,
        time_window=TIME_RANGE,
    )
    defaults.update(overrides)
    return PSPMetrics(**defaults)


def make_transaction(
    psp: str = "Paystack",
    status: TransactionStatus = TransactionStatus.APPROVED,
    response_time_ms: int = 1500,
    created_at: Optional[datetime] = None,
    payment_method: str = "card",
    **overrides,
) -> TransactionIn:
    """Factory function for creating test TransactionIn objects."""
    defaults = dict(
        id=f"txn_{uuid4().hex[:12]}",
        psp=psp,
        payment_method=payment_method,
        amount=42.5,
        currency="NGN",
        status=status,
        response_time_ms=response_time_ms,
        created_at=created_at or WINDOW_END - timedelta(minutes=10),
    )
    defaults.update(overrides)
    return TransactionIn(**defaults)


def make_batch(
    psp: str = "Paystack",
    counts: Optional[dict[TransactionStatus, int]] = None,
    response_time_ms: int = 1500,
    created_at: Optional[datetime] = None,
    payment_method: str = "card",
) -> list[TransactionIn]:
    """Build transactions for one PSP with the given per-status counts."""
    counts = counts or {TransactionStatus.APPROVED: 10}
    return [
        make_transaction(
            psp=psp,
            status=status,
            response_time_ms=response_time_ms,
            created_at=created_at,
            payment_method=payment_method,
        )
        for status, n in counts.items()
        for _ in range(n)
    ]


def transaction_payload(**overrides) -> dict:
    """JSON body for POST /api/transactions."""
    return make_transaction(**overrides).model_dump(mode="json")


# ---------------------------------------------------------------------------
# Storage doubles
# ---------------------------------------------------------------------------


class MockStorage(StorageBackend):
    """
    In-memory storage backend for service tests.

    Aggregates in plain Python with the same inclusive window bounds as the
    DuckDB backend.
    """

    def __init__(self):
        self.transactions: dict[str, TransactionIn] = {}
        self.is_open = False

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def insert_transaction(self, transaction: TransactionIn) -> None:
        if transaction.id in self.transactions:
            raise DuplicateTransactionError(transaction.id)
        self.transactions[transaction.id] = transaction

    def insert_transactions(self, transactions: list[TransactionIn]) -> tuple[int, list[str]]:
        errors: list[str] = []
        seen: set[str] = set()
        accepted = []
        for tx in transactions:
            if tx.id in self.transactions or tx.id in seen:
                errors.append(f"Skipped {tx.id}: duplicate transaction id")
                continue
            seen.add(tx.id)
            accepted.append(tx)

        # All-or-nothing, like the DuckDB batch
        self.transactions.update((tx.id, tx) for tx in accepted)
        return len(accepted), errors

    def _in_window(self, time_range: TimeRange, psp: Optional[str] = None, method: Optional[str] = None):
        return [
            tx
            for tx in self.transactions.values()
            if time_range.start <= tx.created_at <= time_range.end
            and (psp is None or tx.psp == psp)
            and (method is None or tx.payment_method == method)
        ]

    @staticmethod
    def _aggregate(psp: str, txs: list[TransactionIn], method: Optional[str] = None) -> AggregatedRow:
        def count(status: TransactionStatus) -> int:
            return sum(1 for tx in txs if tx.status == status)

        return AggregatedRow(
            psp=psp,
            payment_method=method,
            total=len(txs),
            approved=count(TransactionStatus.APPROVED),
            declined=count(TransactionStatus.DECLINED),
            timeout=count(TransactionStatus.TIMEOUT),
            error=count(TransactionStatus.ERROR),
            pending=count(TransactionStatus.PENDING),
            avg_response_time=sum(tx.response_time_ms for tx in txs) / len(txs),
        )

    def aggregate_by_psp(self, time_range: TimeRange) -> list[AggregatedRow]:
        txs = self._in_window(time_range)
        psps = sorted({tx.psp for tx in txs})
        return [self._aggregate(p, [tx for tx in txs if tx.psp == p]) for p in psps]

    def aggregate_for_psp(self, psp: str, time_range: TimeRange) -> Optional[AggregatedRow]:
        txs = self._in_window(time_range, psp=psp)
        return self._aggregate(psp, txs) if txs else None

    def aggregate_by_payment_method(self, psp: str, time_range: TimeRange) -> list[AggregatedRow]:
        txs = self._in_window(time_range, psp=psp)
        methods = sorted({tx.payment_method for tx in txs})
        return [
            self._aggregate(psp, [tx for tx in txs if tx.payment_method == m], method=m)
            for m in methods
        ]

    def response_times(
        self,
        psp: str,
        time_range: TimeRange,
        payment_method: Optional[str] = None,
    ) -> list[float]:
        return sorted(
            tx.response_time_ms for tx in self._in_window(time_range, psp=psp, method=payment_method)
        )

    def count_transactions(self) -> int:
        return len(self.transactions)

    def distinct_psps(self) -> list[str]:
        return sorted({tx.psp for tx in self.transactions.values()})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_storage():
    """Fresh in-memory storage double."""
    storage = MockStorage()
    storage.open()
    return storage


@pytest.fixture
def duckdb_storage():
    """Opened in-memory DuckDB backend, closed after the test."""
    storage = DuckDBStorage(db_path=MEMORY_DB)
    storage.open()
    yield storage
    storage.close()


@pytest.fixture
def test_settings():
    """Settings pointing at an ephemeral DuckDB database."""
    return Settings(db_path=MEMORY_DB, log_format="console", dev_mode=True)


@pytest.fixture
def client(test_settings):
    """TestClient with the lifespan run, so storage is opened and closed."""
    from pspmonitor.main import create_app

    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client
