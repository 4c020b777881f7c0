"""
Ingestion service: stores validated transactions and announces them.
"""

from typing import Optional

import structlog

from pspmonitor.models.transactions import (
    BulkIngestResult,
    BulkTransactionRequest,
    IngestResult,
    TransactionIn,
)
from pspmonitor.services.event_broadcaster import EventBroadcaster
from pspmonitor.storage.base import StorageBackend

logger = structlog.get_logger()


class IngestionService:
    """
    Writes transactions to storage and publishes ingestion events.

    Input is already validated by the request models; this service adds no
    checks of its own.

    Attributes:
        storage: Opened storage backend
        broadcaster: Optional SSE broadcaster notified after each write
    """

    def __init__(self, storage: StorageBackend, broadcaster: Optional[EventBroadcaster] = None):
        self.storage = storage
        self.broadcaster = broadcaster

    def ingest_single(self, transaction: TransactionIn) -> IngestResult:
        """
        Store one transaction.

        Raises:
            DuplicateTransactionError: If the id already exists
            StorageError: If the write fails
        """
        self.storage.insert_transaction(transaction)

        logger.info(
            "transaction_ingested",
            transaction_id=transaction.id,
            psp=transaction.psp,
            status=transaction.status.value,
        )
        self._publish(
            "transaction_ingested",
            {
                "transaction_id": transaction.id,
                "psp": transaction.psp,
                "status": transaction.status.value,
            },
        )
        return IngestResult(transaction_id=transaction.id)

    def ingest_batch(self, request: BulkTransactionRequest) -> BulkIngestResult:
        """
        Store a batch; duplicate ids are skipped and listed in ``errors``.

        Raises:
            StorageError: If the batch write fails
        """
        inserted, errors = self.storage.insert_transactions(request.transactions)
        result = BulkIngestResult(
            total_received=len(request.transactions),
            inserted=inserted,
            errors=errors,
        )

        logger.info(
            "transactions_ingested",
            total_received=result.total_received,
            inserted=inserted,
            skipped=len(errors),
        )
        if inserted:
            self._publish(
                "transactions_ingested",
                {
                    "inserted": inserted,
                    "psps": sorted({tx.psp for tx in request.transactions}),
                },
            )
        return result

    def _publish(self, event_type: str, data: dict) -> None:
        if self.broadcaster is not None:
            self.broadcaster.publish(event_type, data)
