"""On-ledger AMM pool price source.

Constant product: (x + dx) * (y - dy) = x * y  =>  dy = y * dx / (x + dx),
then the pool's trading fee is taken off the output.
"""

import logging
from decimal import Decimal
from typing import Optional

from bearswap.pricing.base import PriceRequest, PriceSource
from bearswap.tokens import parse_ledger_amount

logger = logging.getLogger(__name__)

# amm_info trading_fee is expressed in units of 1/100,000 (1000 = 1%)
TRADING_FEE_DENOMINATOR = Decimal("100000")


def constant_product_output(
    input_pool: Decimal,
    output_pool: Decimal,
    input_amount: Decimal,
    trading_fee: int = 0,
) -> Decimal:
    """Output for swapping ``input_amount`` into a constant-product pool."""
    if input_pool <= 0 or output_pool <= 0 or input_amount <= 0:
        return Decimal("0")
    dy = output_pool * input_amount / (input_pool + input_amount)
    fee = Decimal(trading_fee) / TRADING_FEE_DENOMINATOR
    return dy * (Decimal("1") - fee)


class AmmPriceSource(PriceSource):
    """Price from the AMM pool for the pair."""

    def __init__(self, ledger, timeout: float = 5.0):
        self.ledger = ledger
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "XRPL AMM"

    async def get_output(self, request: PriceRequest) -> Optional[Decimal]:
        result = await self.ledger.request(
            "amm_info",
            {
                "asset": request.input_token.to_ledger_asset(),
                "asset2": request.output_token.to_ledger_asset(),
            },
        )
        amm = result.get("amm")
        if not amm:
            return None

        pool1 = parse_ledger_amount(amm["amount"])
        pool2 = parse_ledger_amount(amm["amount2"])

        if request.input_token.matches_ledger_amount(amm["amount"]):
            input_pool, output_pool = pool1, pool2
        else:
            input_pool, output_pool = pool2, pool1

        output = constant_product_output(
            input_pool,
            output_pool,
            request.input_amount,
            int(amm.get("trading_fee", 0)),
        )
        logger.debug(
            f"AMM {request.input_token.symbol}->{request.output_token.symbol}: "
            f"pools {input_pool}/{output_pool}, fee {amm.get('trading_fee', 0)}, out {output}"
        )
        return output if output > 0 else None

    async def try_price(self, request: PriceRequest) -> Optional[Decimal]:
        output = await self.get_output(request)
        if output is None:
            return None
        return request.price_from_fill(request.input_amount, output)
