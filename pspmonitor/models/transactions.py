"""
Transaction ingestion models for the PSP health monitor.

These models are the validation boundary for untrusted input: request
bodies are parsed into them before anything reaches storage.
"""

from datetime import datetime

from pydantic import AwareDatetime, BaseModel, Field, field_validator

from .enums import TransactionStatus
from .metrics import check_utc_range

MAX_BULK_TRANSACTIONS = 1000

# Upper bound of the 32-bit response_time_ms storage column
MAX_RESPONSE_TIME_MS = 2_147_483_647


class TransactionIn(BaseModel):
    """
    A single PSP transaction outcome.

    Attributes:
        id: Caller-assigned unique transaction id
        psp: Payment service provider name
        payment_method: Payment method (e.g. "card", "mpesa")
        amount: Positive transaction amount
        currency: ISO-4217 currency code
        status: Transaction outcome
        response_time_ms: PSP response time in milliseconds
        created_at: When the transaction happened, with UTC offset
    """

    id: str = Field(min_length=1)
    psp: str = Field(min_length=1)
    payment_method: str = Field(min_length=1)
    amount: float = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)
    status: TransactionStatus
    response_time_ms: int = Field(ge=0, le=MAX_RESPONSE_TIME_MS)
    created_at: AwareDatetime

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "txn_000123",
                "psp": "Paystack",
                "payment_method": "card",
                "amount": 42.5,
                "currency": "NGN",
                "status": "approved",
                "response_time_ms": 1830,
                "created_at": "2025-01-15T00:12:03+01:00",
            }
        }
    }

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Store currency codes upper-cased."""
        return v.upper()

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        """Timestamps are stored in UTC, so the UTC equivalent must exist."""
        return check_utc_range(v)


class BulkTransactionRequest(BaseModel):
    """Batch of transactions for bulk ingestion."""

    transactions: list[TransactionIn] = Field(
        min_length=1, max_length=MAX_BULK_TRANSACTIONS
    )


class IngestResult(BaseModel):
    """Result of a single-transaction ingest."""

    transaction_id: str


class BulkIngestResult(BaseModel):
    """Result of a bulk ingest. Skipped duplicate ids are listed in ``errors``."""

    total_received: int
    inserted: int
    errors: list[str] = Field(default_factory=list)
