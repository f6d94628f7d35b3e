"""Swap quotes.

FEE IS ALWAYS IN XRP:
- XRP -> Token: fee = rate * input XRP, taken off the input leg
- Token -> XRP: fee = rate * output XRP, taken off the output leg
"""

import logging
import time
from dataclasses import dataclass
from decimal import ROUND_DOWN, Context, Decimal, InvalidOperation
from typing import Callable, Optional, Union

from bearswap.config import get_settings
from bearswap.errors import InvalidAmountError, InvalidPairError, InvalidSlippageError
from bearswap.fees import FeeTier, describe_fee, rate_of
from bearswap.pricing.base import PriceOracle, PriceRequest
from bearswap.tokens import Token, drops_to_xrp, xrp_to_drops

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = Decimal("10000")
_FLOOR_CONTEXT = Context(prec=15, rounding=ROUND_DOWN)


def _plain(value: Decimal) -> str:
    """Fixed-point string without exponent notation."""
    return format(value, "f")


@dataclass(frozen=True)
class SwapQuote:
    """An immutable, time-bounded swap quote."""

    input_token: Token
    output_token: Token
    input_amount: Decimal
    output_amount: Decimal  # after fee
    exchange_rate: Decimal  # output per input
    fee_amount: Decimal  # always XRP
    fee_tier: FeeTier
    slippage_bps: int
    minimum_received: Decimal
    price_impact_pct: Decimal
    price_in_xrp: Decimal
    created_at: float
    expires_at: float

    @property
    def is_input_native(self) -> bool:
        return self.input_token.is_native

    @property
    def is_output_native(self) -> bool:
        return self.output_token.is_native

    @property
    def fee_rate(self) -> Decimal:
        return rate_of(self.fee_tier)

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Check if the quote has expired."""
        return (time.time() if now is None else now) > self.expires_at

    def seconds_until_expiry(self, now: Optional[float] = None) -> float:
        """Seconds until the quote expires (negative if expired)."""
        return self.expires_at - (time.time() if now is None else now)

    @property
    def swap_input_amount(self) -> Decimal:
        """Input actually sent through the DEX (input minus fee for XRP input)."""
        if self.is_input_native:
            return self.input_amount - self.fee_amount
        return self.input_amount

    @property
    def swap_minimum_received(self) -> Decimal:
        """Delivery floor for the swap leg alone.

        For XRP input only input minus fee (in whole drops) goes through the
        DEX, so the floor shrinks in the same proportion. Rounded down to 15
        significant digits so the ledger amount never exceeds it.
        """
        floor = self.minimum_received
        if self.is_input_native:
            sent = drops_to_xrp(xrp_to_drops(self.swap_input_amount))
            floor = floor * sent / self.input_amount
        return _FLOOR_CONTEXT.create_decimal(floor)

    def to_dict(self) -> dict:
        """Convert to dictionary for display or serialization."""
        return {
            "input_token": str(self.input_token),
            "output_token": str(self.output_token),
            "input_amount": _plain(self.input_amount),
            "output_amount": _plain(self.output_amount),
            "exchange_rate": _plain(self.exchange_rate),
            "fee_amount": _plain(self.fee_amount),
            "fee_tier": self.fee_tier.value,
            "fee": describe_fee(self.fee_tier, self.fee_amount),
            "slippage_bps": self.slippage_bps,
            "minimum_received": _plain(self.minimum_received),
            "price_impact_pct": _plain(self.price_impact_pct),
            "expires_at": self.expires_at,
        }


def estimate_price_impact(xrp_amount: Decimal) -> Decimal:
    """Estimate price impact in percent from trade size in XRP.

    A size-bucketed heuristic, not a depth calculation; UI impact
    warnings are tuned to these buckets. Non-decreasing in trade size.
    """
    if xrp_amount < 100:
        return Decimal("0.1")
    if xrp_amount < 1000:
        return Decimal("0.3")
    if xrp_amount < 5000:
        return Decimal("0.7")
    if xrp_amount < 10000:
        return Decimal("1.2")
    return Decimal("2.0") + (xrp_amount - 10000) / 50000


class QuoteBuilder:
    """Builds fee-adjusted, slippage-bounded quotes."""

    def __init__(
        self,
        oracle: PriceOracle,
        quote_ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.oracle = oracle
        self.quote_ttl_seconds = (
            quote_ttl_seconds
            if quote_ttl_seconds is not None
            else get_settings().quote_ttl_seconds
        )
        self._clock = clock

    async def build_quote(
        self,
        input_token: Token,
        output_token: Token,
        input_amount: Union[Decimal, str, int],
        slippage_bps: int,
        fee_tier: Union[FeeTier, str, None] = FeeTier.STANDARD,
    ) -> SwapQuote:
        """Build a quote for swapping ``input_amount`` of ``input_token``.

        Raises:
            InvalidPairError: XRP is not on exactly one side
            InvalidAmountError: amount is not positive
            InvalidSlippageError: slippage outside 0-10000 bps
            NoPriceAvailableError: no source could price the token
        """
        if input_token.is_native == output_token.is_native:
            raise InvalidPairError(input_token.symbol, output_token.symbol)

        try:
            amount = Decimal(str(input_amount))
        except InvalidOperation:
            raise InvalidAmountError(input_amount)
        if not amount.is_finite() or amount <= 0:
            raise InvalidAmountError(input_amount)

        if not 0 <= int(slippage_bps) <= 10000:
            raise InvalidSlippageError(slippage_bps)

        tier = FeeTier.parse(fee_tier)
        is_input_native = input_token.is_native
        token = output_token if is_input_native else input_token

        request = PriceRequest(
            token=token,
            input_token=input_token,
            output_token=output_token,
            input_amount=amount,
        )
        price = await self.oracle.price_of(token, request)

        if is_input_native:
            output_before_fee = amount / price
        else:
            output_before_fee = amount * price

        fee_rate = rate_of(tier)
        if is_input_native:
            fee_amount = amount * fee_rate
            output_after_fee = output_before_fee
            xrp_size = amount
        else:
            fee_amount = output_before_fee * fee_rate
            output_after_fee = output_before_fee - fee_amount
            xrp_size = output_before_fee

        minimum_received = output_after_fee * (
            Decimal("1") - Decimal(int(slippage_bps)) / BPS_DENOMINATOR
        )

        now = self._clock()
        quote = SwapQuote(
            input_token=input_token,
            output_token=output_token,
            input_amount=amount,
            output_amount=output_after_fee,
            exchange_rate=output_after_fee / amount,
            fee_amount=fee_amount,
            fee_tier=tier,
            slippage_bps=int(slippage_bps),
            minimum_received=minimum_received,
            price_impact_pct=estimate_price_impact(xrp_size),
            price_in_xrp=price,
            created_at=now,
            expires_at=now + self.quote_ttl_seconds,
        )

        logger.info(
            f"Quote {amount} {input_token.symbol} -> {output_after_fee:.6f} {output_token.symbol} "
            f"(fee {fee_amount:.6f} XRP, min {minimum_received:.6f}, "
            f"expires in {self.quote_ttl_seconds}s)"
        )
        return quote
