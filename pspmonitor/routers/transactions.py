"""
Transaction ingestion router.

Request bodies are validated by the TransactionIn / BulkTransactionRequest
models; validation failures are turned into 400 responses by the
application's RequestValidationError handler.
"""

from fastapi import APIRouter, Depends, HTTPException

from pspmonitor.models.transactions import BulkTransactionRequest, TransactionIn
from pspmonitor.routers.deps import get_ingestion_service
from pspmonitor.services import IngestionService
from pspmonitor.storage.exceptions import DuplicateTransactionError
from pspmonitor.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.post("", status_code=201)
async def ingest_transaction(
    transaction: TransactionIn,
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Ingest a single transaction.
    """
    try:
        result = service.ingest_single(transaction)
    except DuplicateTransactionError as e:
        logger.warning("transaction_duplicate", transaction_id=e.transaction_id)
        raise HTTPException(status_code=409, detail="Transaction with this ID already exists")

    return {"success": True, "data": result.model_dump(mode="json")}


@router.post("/bulk", status_code=201)
async def ingest_transactions_bulk(
    request: BulkTransactionRequest,
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Ingest up to 1000 transactions. Duplicate ids are skipped.
    """
    result = service.ingest_batch(request)
    return {"success": True, "data": result.model_dump(mode="json")}
