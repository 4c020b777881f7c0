"""Storage-layer exceptions."""


class StorageError(Exception):
    """Base exception for all storage operation failures."""

    pass


class DuplicateTransactionError(StorageError):
    """Raised when a transaction id already exists."""

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction with id '{transaction_id}' already exists")
