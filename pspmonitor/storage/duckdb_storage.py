"""
DuckDB storage implementation for the PSP health monitor.

Stores raw transaction outcomes in a single columnar table and serves the
grouped aggregates and sorted response-time samples the metrics services
need. Timestamps are normalized to UTC and stored as naive TIMESTAMP values,
so window comparisons are plain range predicates.

Key features:
- Explicit open/close lifecycle owned by the application
- Per-thread cursors on one shared database connection
- Idempotent schema creation on open
- Batch ingestion inside a single transaction
"""

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import duckdb
import structlog

from pspmonitor.models.enums import TransactionStatus
from pspmonitor.models.metrics import AggregatedRow, TimeRange
from pspmonitor.models.transactions import TransactionIn

from .base import StorageBackend
from .exceptions import DuplicateTransactionError, StorageError

logger = structlog.get_logger(__name__)

MEMORY_DB = ":memory:"

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in TransactionStatus)

_AGGREGATE_COLUMNS = """
    COUNT(*) AS total,
    SUM(CASE WHEN status = 'approved' THEN 1 ELSE 0 END) AS approved,
    SUM(CASE WHEN status = 'declined' THEN 1 ELSE 0 END) AS declined,
    SUM(CASE WHEN status = 'timeout' THEN 1 ELSE 0 END) AS timeout,
    SUM(CASE WHEN status = 'error' THEN 1 ELSE 0 END) AS error,
    SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END) AS pending,
    AVG(response_time_ms) AS avg_response_time
"""

_INSERT_SQL = """
    INSERT INTO transactions (
        id, psp, payment_method, amount, currency, status,
        response_time_ms, created_at, ingested_at
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def to_utc_naive(value: datetime) -> datetime:
    """Convert an aware datetime to a naive UTC datetime for storage."""
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class DuckDBStorage(StorageBackend):
    """
    DuckDB implementation of the storage backend.

    One connection is opened per storage instance; each thread works through
    its own cursor derived from it, which DuckDB supports for concurrent use.
    Passing ``":memory:"`` gives an ephemeral database shared by all cursors
    of the instance, which is what the test suite uses.

    Attributes:
        db_path: Database file path, or ":memory:"
    """

    def __init__(self, db_path: str = "./data/payments.duckdb"):
        """
        Initialize DuckDB storage backend. Does not connect; call open().

        Args:
            db_path: Path to DuckDB database file
        """
        self.db_path = db_path
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._local = threading.local()
        self._cursors: list[duckdb.DuckDBPyConnection] = []
        self._lock = threading.Lock()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self) -> None:
        """Connect and create the schema if needed."""
        with self._lock:
            if self._connection is not None:
                return

            if self.db_path != MEMORY_DB:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            try:
                self._connection = duckdb.connect(self.db_path)
            except duckdb.Error as e:
                logger.error("duckdb_connection_failed", db_path=self.db_path, error=str(e))
                raise StorageError(f"Failed to connect to DuckDB: {e}") from e

            self._initialize_schema(self._connection)

        logger.info("duckdb_storage_opened", db_path=self.db_path)

    def close(self) -> None:
        """Close every cursor and the shared connection."""
        with self._lock:
            if self._connection is None:
                return
            for cursor in self._cursors:
                cursor.close()
            self._cursors.clear()
            self._connection.close()
            self._connection = None
            self._local = threading.local()

        logger.info("duckdb_storage_closed", db_path=self.db_path)

    def _cursor(self) -> duckdb.DuckDBPyConnection:
        """
        Get this thread's cursor, creating it on first use.

        Raises:
            StorageError: If the storage has not been opened
        """
        cursor = getattr(self._local, "cursor", None)
        if cursor is not None:
            return cursor

        with self._lock:
            if self._connection is None:
                raise StorageError("Storage is not open")
            cursor = self._connection.cursor()
            self._cursors.append(cursor)

        self._local.cursor = cursor
        logger.debug("duckdb_cursor_created", thread_id=threading.get_ident())
        return cursor

    def _initialize_schema(self, conn: duckdb.DuckDBPyConnection) -> None:
        """
        Create the transactions table and its indexes. Idempotent.

        Raises:
            StorageError: If schema creation fails
        """
        try:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS transactions (
                    id VARCHAR PRIMARY KEY,
                    psp VARCHAR NOT NULL,
                    payment_method VARCHAR NOT NULL,
                    amount DOUBLE NOT NULL,
                    currency VARCHAR NOT NULL,
                    status VARCHAR NOT NULL CHECK (status IN ({_STATUS_VALUES})),
                    response_time_ms INTEGER NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    ingested_at TIMESTAMP NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_transactions_psp_created
                ON transactions(psp, created_at)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_transactions_created
                ON transactions(created_at)
            """)
        except duckdb.Error as e:
            logger.error("duckdb_schema_init_failed", error=str(e))
            raise StorageError(f"Failed to initialize schema: {e}") from e

        logger.info("duckdb_schema_initialized")

    # =========================================================================
    # Transactions - Writes
    # =========================================================================

    def insert_transaction(self, transaction: TransactionIn) -> None:
        """Insert a single transaction."""
        cursor = self._cursor()
        try:
            cursor.execute(_INSERT_SQL, self._transaction_params(transaction))
        except duckdb.ConstraintException as e:
            raise DuplicateTransactionError(transaction.id) from e
        except duckdb.Error as e:
            logger.error("transaction_insert_failed", transaction_id=transaction.id, error=str(e))
            raise StorageError(f"Failed to insert transaction: {e}") from e

        logger.debug("transaction_inserted", transaction_id=transaction.id, psp=transaction.psp)

    def insert_transactions(self, transactions: list[TransactionIn]) -> tuple[int, list[str]]:
        """
        Insert a batch in one transaction.

        Ids already stored, or repeated earlier in the same batch, are skipped
        and reported in the returned error list.
        """
        cursor = self._cursor()
        errors: list[str] = []

        try:
            ids = [tx.id for tx in transactions]
            existing = {
                row[0]
                for row in cursor.execute(
                    "SELECT id FROM transactions WHERE list_contains(?, id)", [ids]
                ).fetchall()
            }

            seen: set[str] = set()
            params = []
            for tx in transactions:
                if tx.id in existing or tx.id in seen:
                    errors.append(f"Skipped {tx.id}: duplicate transaction id")
                    continue
                seen.add(tx.id)
                params.append(self._transaction_params(tx))

            if params:
                cursor.begin()
                try:
                    cursor.executemany(_INSERT_SQL, params)
                    cursor.commit()
                except duckdb.Error:
                    cursor.rollback()
                    raise
        except duckdb.Error as e:
            logger.error("transaction_batch_insert_failed", batch_size=len(transactions), error=str(e))
            raise StorageError(f"Failed to insert transaction batch: {e}") from e

        logger.debug(
            "transaction_batch_inserted",
            batch_size=len(transactions),
            inserted=len(params),
            skipped=len(errors),
        )
        return len(params), errors

    @staticmethod
    def _transaction_params(tx: TransactionIn) -> list[Any]:
        return [
            tx.id,
            tx.psp,
            tx.payment_method,
            tx.amount,
            tx.currency,
            tx.status.value,
            tx.response_time_ms,
            to_utc_naive(tx.created_at),
            to_utc_naive(datetime.now(timezone.utc)),
        ]

    # =========================================================================
    # Transactions - Aggregates
    # =========================================================================

    def aggregate_by_psp(self, time_range: TimeRange) -> list[AggregatedRow]:
        """Aggregate every PSP in the window, ordered by PSP name."""
        rows = self._query(
            f"""
            SELECT psp, {_AGGREGATE_COLUMNS}
            FROM transactions
            WHERE created_at >= ? AND created_at <= ?
            GROUP BY psp
            ORDER BY psp
            """,
            self._range_params(time_range),
        )
        return [AggregatedRow(**row) for row in rows]

    def aggregate_for_psp(self, psp: str, time_range: TimeRange) -> Optional[AggregatedRow]:
        """Aggregate one PSP in the window."""
        rows = self._query(
            f"""
            SELECT psp, {_AGGREGATE_COLUMNS}
            FROM transactions
            WHERE psp = ? AND created_at >= ? AND created_at <= ?
            GROUP BY psp
            """,
            [psp, *self._range_params(time_range)],
        )
        return AggregatedRow(**rows[0]) if rows else None

    def aggregate_by_payment_method(
        self, psp: str, time_range: TimeRange
    ) -> list[AggregatedRow]:
        """Aggregate one PSP per payment method, ordered by method."""
        rows = self._query(
            f"""
            SELECT psp, payment_method, {_AGGREGATE_COLUMNS}
            FROM transactions
            WHERE psp = ? AND created_at >= ? AND created_at <= ?
            GROUP BY psp, payment_method
            ORDER BY payment_method
            """,
            [psp, *self._range_params(time_range)],
        )
        return [AggregatedRow(**row) for row in rows]

    def response_times(
        self,
        psp: str,
        time_range: TimeRange,
        payment_method: Optional[str] = None,
    ) -> list[float]:
        """Sorted response-time samples for a PSP (and optionally a method)."""
        sql = """
            SELECT response_time_ms
            FROM transactions
            WHERE psp = ? AND created_at >= ? AND created_at <= ?
        """
        params: list[Any] = [psp, *self._range_params(time_range)]
        if payment_method is not None:
            sql += " AND payment_method = ?"
            params.append(payment_method)
        sql += " ORDER BY response_time_ms ASC"

        return [row["response_time_ms"] for row in self._query(sql, params)]

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def count_transactions(self) -> int:
        """Total number of stored transactions."""
        return self._query("SELECT COUNT(*) AS count FROM transactions")[0]["count"]

    def distinct_psps(self) -> list[str]:
        """All PSP names seen, sorted."""
        rows = self._query("SELECT DISTINCT psp FROM transactions ORDER BY psp")
        return [row["psp"] for row in rows]

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _range_params(time_range: TimeRange) -> list[datetime]:
        return [to_utc_naive(time_range.start), to_utc_naive(time_range.end)]

    def _query(self, sql: str, params: Optional[list[Any]] = None) -> list[dict]:
        """
        Run a read query and return rows as dicts.

        Raises:
            StorageError: If the query fails
        """
        cursor = self._cursor()
        try:
            result = cursor.execute(sql, params or [])
            columns = [col[0] for col in result.description]
            return [dict(zip(columns, row)) for row in result.fetchall()]
        except duckdb.Error as e:
            logger.error("duckdb_query_failed", error=str(e))
            raise StorageError(f"Query failed: {e}") from e
