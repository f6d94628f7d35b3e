"""Exception hierarchy for quoting and swap execution."""

from decimal import Decimal
from typing import Optional


class BearSwapError(Exception):
    """Base class for all engine errors."""

    pass


# ======================
# Quote errors
# ======================


class QuoteError(BearSwapError):
    """Raised when a quote cannot be built."""

    pass


class InvalidPairError(QuoteError):
    """Raised when neither (or both) legs of a pair are XRP."""

    def __init__(self, input_symbol: str, output_symbol: str):
        self.input_symbol = input_symbol
        self.output_symbol = output_symbol
        super().__init__(
            f"XRP must be on exactly one side of every trade "
            f"(got {input_symbol} -> {output_symbol})"
        )


class InvalidAmountError(QuoteError):
    """Raised when the input amount is not positive."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Swap amount must be greater than zero (got {amount})")


class InvalidSlippageError(QuoteError):
    """Raised when slippage is outside 0-10000 basis points."""

    def __init__(self, slippage_bps):
        self.slippage_bps = slippage_bps
        super().__init__(
            f"Slippage must be between 0 and 10000 basis points (got {slippage_bps})"
        )


class NoPriceAvailableError(QuoteError):
    """Raised when every price source in the cascade failed."""

    def __init__(self, symbol: str, tried: Optional[list[str]] = None):
        self.symbol = symbol
        self.tried = tried or []
        sources = ", ".join(self.tried) if self.tried else "no sources configured"
        super().__init__(
            f"No price available for {symbol} (tried: {sources}). "
            f"Please try again in a few seconds."
        )


# ======================
# Execution errors
# ======================


class SwapError(BearSwapError):
    """Raised when a swap attempt cannot complete."""

    pass


class QuoteExpiredError(SwapError):
    """Raised when an expired quote is passed to the executor."""

    def __init__(self, expired_for: float):
        self.expired_for = expired_for
        super().__init__(
            f"Quote expired {expired_for:.1f}s ago. Request a fresh quote and try again."
        )


class SwapInProgressError(SwapError):
    """Raised when another swap for the same account is still running."""

    def __init__(self, account: str):
        self.account = account
        super().__init__(
            f"Another swap for {account} is still in progress. "
            f"Wait for it to finish before starting a new one."
        )


class InsufficientFeeFundsError(SwapError):
    """Raised when the account cannot pay the fee after the swap."""

    def __init__(
        self,
        available: Decimal,
        required: Decimal,
        base_reserve: Decimal,
    ):
        self.available = available
        self.required = required
        self.base_reserve = base_reserve
        self.shortfall = required - available
        super().__init__(
            f"Insufficient XRP for swap fee. You need ~{self.shortfall:.6f} more XRP "
            f"above the {base_reserve} XRP reserve to complete this swap "
            f"(after swap: {available:.6f} XRP, required: {required:.6f} XRP)."
        )


class TrustlineCreationFailedError(SwapError):
    """Raised when the trust line for the output token could not be created."""

    def __init__(self, symbol: str, result_code: Optional[str] = None):
        self.symbol = symbol
        self.result_code = result_code
        detail = f" ({result_code})" if result_code else ""
        super().__init__(
            f"Failed to create trustline for {symbol}{detail}. "
            f"Make sure you hold enough XRP for the owner reserve and try again."
        )


class SwapFailedError(SwapError):
    """Raised when the ledger rejects the swap transaction."""

    def __init__(self, result_code: Optional[str], tx_hash: Optional[str] = None):
        self.result_code = result_code
        self.tx_hash = tx_hash
        super().__init__(
            f"Swap transaction failed ({result_code or 'no result'}). "
            f"No fee was charged. Request a new quote, or raise slippage if the price moved."
        )


class FeeCollectionPartialError(SwapError):
    """Swap succeeded but one or more fee payments failed.

    Reported as a warning alongside a successful result, never raised
    out of the executor.
    """

    def __init__(self, failed: list[str], swap_tx_hash: Optional[str] = None):
        self.failed = failed
        self.swap_tx_hash = swap_tx_hash
        super().__init__(
            f"Fee collection issue (swap succeeded): {', '.join(failed)}"
        )
