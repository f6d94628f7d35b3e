"""On-ledger order book price source.

Requests the offers that sell the output token for the input token and
walks them best-first, consuming liquidity until the input amount is used
up or the book runs out.

book_offers fields, from the taker's side:
- TakerGets: what the taker receives (output units)
- TakerPays: what the taker pays (input units)
- owner_funds / taker_gets_funded: how much of TakerGets is actually backed
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from bearswap.pricing.base import PriceRequest, PriceSource
from bearswap.tokens import parse_ledger_amount

logger = logging.getLogger(__name__)


@dataclass
class BookFill:
    """Result of walking an order book."""

    output: Decimal
    consumed_input: Decimal
    offers_used: int
    effective_rate: Decimal  # output per unit of input

    @property
    def is_empty(self) -> bool:
        return self.output <= 0


def _funded_sizes(offer: dict) -> tuple[Decimal, Decimal]:
    """Return (gets, pays) limited to what the offer owner can actually deliver."""
    gets = parse_ledger_amount(offer["TakerGets"])
    pays = parse_ledger_amount(offer["TakerPays"])

    if "taker_gets_funded" in offer:
        funded_gets = parse_ledger_amount(offer["taker_gets_funded"])
    elif "owner_funds" in offer:
        owner_funds = str(offer["owner_funds"])
        if isinstance(offer["TakerGets"], str):
            # XRP funds are reported in drops
            funded_gets = parse_ledger_amount(owner_funds)
        else:
            funded_gets = Decimal(owner_funds)
    else:
        funded_gets = gets

    funded_gets = min(gets, funded_gets)
    if gets <= 0 or funded_gets <= 0:
        return Decimal("0"), Decimal("0")
    return funded_gets, pays * funded_gets / gets


def walk_order_book(offers: list[dict], input_amount: Decimal) -> BookFill:
    """Fill ``input_amount`` against ``offers`` in book order."""
    remaining = input_amount
    total_output = Decimal("0")
    used = 0

    for offer in offers:
        if remaining <= 0:
            break

        gets, pays = _funded_sizes(offer)
        if gets <= 0 or pays <= 0:
            continue

        # input per 1 unit of output
        rate = pays / gets
        consumed = min(remaining, pays)

        total_output += consumed / rate
        remaining -= consumed
        used += 1

    consumed_input = input_amount - remaining
    effective = total_output / consumed_input if consumed_input > 0 else Decimal("0")
    return BookFill(
        output=total_output,
        consumed_input=consumed_input,
        offers_used=used,
        effective_rate=effective,
    )


class OrderBookPriceSource(PriceSource):
    """Price derived from walking the live order book."""

    def __init__(self, ledger, depth: int = 20, timeout: float = 5.0):
        self.ledger = ledger
        self.depth = depth
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "XRPL order book"

    async def get_fill(self, request: PriceRequest) -> Optional[BookFill]:
        result = await self.ledger.request(
            "book_offers",
            {
                "taker_gets": request.output_token.to_ledger_asset(),
                "taker_pays": request.input_token.to_ledger_asset(),
                "limit": self.depth,
            },
        )
        offers = result.get("offers") or []
        if not offers:
            return None

        fill = walk_order_book(offers, request.input_amount)
        if fill.is_empty:
            return None

        logger.debug(
            f"Book fill {request.input_token.symbol}->{request.output_token.symbol}: "
            f"{fill.consumed_input} in, {fill.output} out over {fill.offers_used} offer(s)"
        )
        return fill

    async def try_price(self, request: PriceRequest) -> Optional[Decimal]:
        fill = await self.get_fill(request)
        if fill is None:
            return None
        return request.price_from_fill(fill.consumed_input, fill.output)
