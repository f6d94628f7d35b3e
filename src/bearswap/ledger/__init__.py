"""XRP Ledger access."""

from bearswap.ledger.client import (
    SUCCESS_CODE,
    LedgerClient,
    LedgerRequestError,
    SubmitResult,
)

__all__ = [
    "SUCCESS_CODE",
    "LedgerClient",
    "LedgerRequestError",
    "SubmitResult",
]
