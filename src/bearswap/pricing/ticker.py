"""OnTheDex ticker price source.

The ticker reports the XRP/TOKEN pair as tokens per 1 XRP, so the price
is inverted to get XRP per token.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from bearswap.pricing.base import PriceRequest, PriceSource

logger = logging.getLogger(__name__)

ONTHEDEX_API = "https://api.onthedex.live/public/v1"


class TickerPriceSource(PriceSource):
    """Price from the OnTheDex ticker endpoint."""

    def __init__(
        self,
        api_url: str = ONTHEDEX_API,
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "OnTheDex ticker"

    async def try_price(self, request: PriceRequest) -> Optional[Decimal]:
        token = request.token
        url = f"{self.api_url}/ticker/XRP/{token.currency}:{token.issuer}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(url)

        if response.status_code != 200:
            logger.debug(f"Ticker returned HTTP {response.status_code} for {token.symbol}")
            return None

        last = response.json().get("last")
        try:
            tokens_per_xrp = Decimal(str(last))
        except (InvalidOperation, TypeError):
            return None

        if not tokens_per_xrp.is_finite() or tokens_per_xrp <= 0:
            return None
        return Decimal("1") / tokens_per_xrp
