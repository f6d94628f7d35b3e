"""Swap execution.

One swap attempt, in order:
1. Trustline check (and TrustSet if the output token is not yet trusted)
2. Affordability check: the fee must still be payable after the swap
3. Referrer lookup
4. Build the plan: swap payment + one or two fee payments
5. Autofill, with fee Sequences right after the swap's
6. Sign everything, one transaction at a time
7. Submit the swap and wait; a failed swap submits no fees
8. Submit the fees; a failed fee leaves the swap successful

No step is retried. A failed attempt needs a fresh quote.
"""

import inspect
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

import httpx

from bearswap.config import get_settings
from bearswap.errors import (
    FeeCollectionPartialError,
    InsufficientFeeFundsError,
    QuoteExpiredError,
    SwapError,
    SwapFailedError,
    TrustlineCreationFailedError,
)
from bearswap.ledger.client import LedgerRequestError
from bearswap.quote import SwapQuote
from bearswap.signing.base import SignedTransaction, SigningError, WalletSigner
from bearswap.swap.plan import SwapPlan, build_swap_plan, plan_fees
from bearswap.swap.trustline import TrustlineProvisioner
from bearswap.tokens import is_valid_address
from bearswap.utils.locks import account_swap_lock

logger = logging.getLogger(__name__)


class SwapState(str, Enum):
    """Execution state of one swap attempt."""

    IDLE = "idle"
    CHECKING_TRUSTLINE = "checking_trustline"
    PROVISIONING_TRUSTLINE = "provisioning_trustline"
    CHECKING_AFFORDABILITY = "checking_affordability"
    BUILDING_PLAN = "building_plan"
    AWAITING_SIGNATURES = "awaiting_signatures"
    SUBMITTING_SWAP = "submitting_swap"
    SUBMITTING_FEES = "submitting_fees"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class StatusUpdate:
    """Progress notification sent to the caller."""

    state: SwapState
    message: str


StatusCallback = Callable[[StatusUpdate], Union[Awaitable[None], None]]


@dataclass
class SwapResult:
    """Result of a swap attempt."""

    success: bool
    swap_tx_hash: Optional[str] = None
    fee_tx_hashes: list[str] = field(default_factory=list)
    failed_fee_tx_hashes: list[str] = field(default_factory=list)
    fee_count: int = 0
    error: Optional[str] = None
    warning: Optional[str] = None
    exception: Optional[Exception] = None
    state: SwapState = SwapState.IDLE
    failed_during: Optional[SwapState] = None
    trustline_tx_hash: Optional[str] = None

    @property
    def fee_tx_hash(self) -> Optional[str]:
        """First fee transaction hash."""
        return self.fee_tx_hashes[0] if self.fee_tx_hashes else None

    @property
    def is_partial(self) -> bool:
        """Swap went through but fee collection did not fully succeed."""
        return self.success and isinstance(self.exception, FeeCollectionPartialError)

    def raise_for_failure(self) -> None:
        """Re-raise the error behind a failed attempt."""
        if not self.success and self.exception is not None:
            raise self.exception


class SwapExecutor:
    """Runs a quote through the ledger as one logical action."""

    def __init__(
        self,
        ledger,
        trustlines: Optional[TrustlineProvisioner] = None,
        referrals=None,
        treasury: Optional[str] = None,
        base_reserve: Optional[Decimal] = None,
        network_fee_buffer: Optional[Decimal] = None,
        clock: Callable[[], float] = time.time,
    ):
        settings = get_settings()
        self.ledger = ledger
        self.trustlines = trustlines or TrustlineProvisioner(ledger)
        self.referrals = referrals
        self.treasury = treasury or settings.treasury_address
        self.base_reserve = base_reserve if base_reserve is not None else settings.base_reserve
        self.network_fee_buffer = (
            network_fee_buffer if network_fee_buffer is not None else settings.network_fee_buffer
        )
        self._clock = clock

    async def execute(
        self,
        quote: SwapQuote,
        account: str,
        signer: WalletSigner,
        on_status: Optional[StatusCallback] = None,
    ) -> SwapResult:
        """Execute a swap.

        Raises:
            QuoteExpiredError: the quote is past its expiry (nothing is sent)
            SwapInProgressError: another swap for ``account`` is running

        Other failures come back as ``SwapResult(success=False)`` with the
        exception attached.
        """
        now = self._clock()
        if quote.is_expired(now):
            raise QuoteExpiredError(now - quote.expires_at)

        async with account_swap_lock(account):
            run = _SwapRun(self, quote, account, signer, on_status)
            return await run.execute()

    async def resolve_referrer(self, account: str) -> Optional[str]:
        """Look up and validate the account's referrer."""
        if self.referrals is None:
            return None

        try:
            referrer = await self.referrals.get_referrer_for(account)
        except Exception as e:
            logger.warning(f"Referrer lookup failed for {account}: {e}")
            return None

        if not referrer:
            return None
        if not is_valid_address(referrer):
            logger.warning(f"Invalid referrer address {referrer!r}, skipping referral payment")
            return None
        if referrer == account:
            logger.warning(f"{account} cannot refer itself, skipping referral payment")
            return None
        return referrer

    def post_swap_balance(self, quote: SwapQuote, balance: Decimal) -> Decimal:
        """XRP balance after the swap, counting only the guaranteed minimum."""
        if quote.is_input_native:
            return balance - quote.input_amount
        if quote.is_output_native:
            return balance + quote.minimum_received
        return balance

    def required_balance(self, quote: SwapQuote) -> Decimal:
        return self.base_reserve + quote.fee_amount + self.network_fee_buffer


class _SwapRun:
    """State for a single execute() call."""

    def __init__(
        self,
        executor: SwapExecutor,
        quote: SwapQuote,
        account: str,
        signer: WalletSigner,
        on_status: Optional[StatusCallback],
    ):
        self.executor = executor
        self.ledger = executor.ledger
        self.quote = quote
        self.account = account
        self.signer = signer
        self.on_status = on_status
        self.state = SwapState.IDLE
        self.result = SwapResult(success=False)

    async def _enter(self, state: SwapState, message: str) -> None:
        self.state = state
        self.result.state = state
        if self.on_status is None:
            return
        try:
            outcome = self.on_status(StatusUpdate(state, message))
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(f"Status callback failed at {state.value}: {e}")

    async def execute(self) -> SwapResult:
        quote = self.quote
        logger.info(
            f"Executing swap for {self.account}: {quote.input_amount} {quote.input_token.symbol} "
            f"-> {quote.output_token.symbol} (min {quote.minimum_received})"
        )
        try:
            await self._provision_trustline()
            await self._check_affordability()
            plan = await self._prepare_plan()
            signed_swap, signed_fees = await self._sign(plan)
            await self._submit_swap(signed_swap)
            await self._submit_fees(plan, signed_fees)
        except (SwapError, SigningError, LedgerRequestError, httpx.HTTPError) as e:
            return await self._fail(e)

        await self._enter(SwapState.DONE, "Swap complete!")
        self.result.success = True
        return self.result

    async def _fail(self, exc: Exception) -> SwapResult:
        failed_during = self.state
        logger.error(f"Swap for {self.account} failed during {failed_during.value}: {exc}")
        await self._enter(SwapState.FAILED, str(exc))
        self.result.success = False
        self.result.error = str(exc)
        self.result.exception = exc
        self.result.failed_during = failed_during
        return self.result

    async def _sign(self, plan: SwapPlan) -> tuple[SignedTransaction, list[SignedTransaction]]:
        await self._enter(SwapState.AWAITING_SIGNATURES, "Please sign the swap transaction...")
        signed_swap = await self.signer.sign(plan.swap_transaction)

        signed_fees = []
        for tx, label in zip(plan.fee_transactions, plan.fee_labels):
            await self._enter(
                SwapState.AWAITING_SIGNATURES, f"Please sign the {label} transaction..."
            )
            signed_fees.append(await self.signer.sign(tx))
        return signed_swap, signed_fees

    async def _provision_trustline(self) -> None:
        token = self.quote.output_token
        if token.is_native:
            return

        await self._enter(SwapState.CHECKING_TRUSTLINE, "Checking trustline...")
        check = await self.executor.trustlines.ensure_trustline(self.account, token)
        if not check.needs_provisioning:
            return

        await self._enter(SwapState.PROVISIONING_TRUSTLINE, "Creating trustline for token...")
        prepared = await self.ledger.autofill(check.transaction)
        signed = await self.signer.sign(prepared)
        outcome = await self.ledger.submit_and_wait(signed.tx_blob)
        if not outcome.success:
            raise TrustlineCreationFailedError(token.symbol, outcome.result_code)

        self.result.trustline_tx_hash = outcome.hash
        logger.info(f"Trustline for {token} created: {outcome.hash}")

    async def _check_affordability(self) -> None:
        await self._enter(SwapState.CHECKING_AFFORDABILITY, "Checking XRP balance for fee...")
        balance = await self.ledger.get_native_balance(self.account)
        after_swap = self.executor.post_swap_balance(self.quote, balance)
        required = self.executor.required_balance(self.quote)

        logger.info(
            f"{self.account}: XRP after swap {after_swap:.6f}, need {required:.6f} for fee"
        )
        if after_swap < required:
            raise InsufficientFeeFundsError(after_swap, required, self.executor.base_reserve)

    async def _prepare_plan(self) -> SwapPlan:
        await self._enter(SwapState.BUILDING_PLAN, "Getting transaction details...")
        referrer = await self.executor.resolve_referrer(self.account)

        fee_plan = plan_fees(self.quote.fee_amount, self.executor.treasury, referrer)
        plan = build_swap_plan(self.quote, self.account, fee_plan)

        plan.swap_transaction = await self.ledger.autofill(plan.swap_transaction)
        plan.assign_sequences()
        plan.fee_transactions = [await self.ledger.autofill(tx) for tx in plan.fee_transactions]

        self.result.fee_count = plan.fee_count
        return plan

    async def _submit_swap(self, signed: SignedTransaction) -> None:
        await self._enter(SwapState.SUBMITTING_SWAP, "Submitting swap...")
        outcome = await self.ledger.submit_and_wait(signed.tx_blob)
        self.result.swap_tx_hash = outcome.hash or signed.hash
        if not outcome.success:
            raise SwapFailedError(outcome.result_code, self.result.swap_tx_hash)
        logger.info(f"Swap {self.result.swap_tx_hash} validated")

    async def _submit_fees(self, plan: SwapPlan, signed_fees: list[SignedTransaction]) -> None:
        await self._enter(SwapState.SUBMITTING_FEES, "Collecting fee...")
        failed = []
        for signed, label in zip(signed_fees, plan.fee_labels):
            try:
                outcome = await self.ledger.submit_and_wait(signed.tx_blob)
            except (LedgerRequestError, httpx.HTTPError) as e:
                logger.warning(f"Submitting {label} failed: {e}")
                failed.append(f"{label}: {e}")
                continue

            if outcome.success:
                self.result.fee_tx_hashes.append(outcome.hash or signed.hash)
            else:
                fee_hash = outcome.hash or signed.hash
                logger.warning(f"{label} {fee_hash} failed: {outcome.result_code}")
                if fee_hash:
                    self.result.failed_fee_tx_hashes.append(fee_hash)
                failed.append(f"{label}: {outcome.result_code} ({fee_hash})")

        if failed:
            warning = FeeCollectionPartialError(failed, self.result.swap_tx_hash)
            self.result.warning = str(warning)
            self.result.exception = warning
