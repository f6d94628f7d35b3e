"""DexScreener search price source.

Fires one search per configured term in parallel and takes the first XRPL
pair whose base token matches. ``priceNative`` is already XRP per token,
so no inversion is needed.

Searches still running when a match arrives (or the source times out)
are left to finish in the background; the shared HTTP client is closed
once they all have.
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from bearswap.pricing.base import PriceRequest, PriceSource
from bearswap.tokens import Token

logger = logging.getLogger(__name__)

DEXSCREENER_API = "https://api.dexscreener.com/latest/dex"
XRPL_CHAIN_ID = "xrpl"


def match_pair_price(pair: dict, token: Token) -> Optional[Decimal]:
    """Return the pair's XRP price if it trades ``token`` against XRP."""
    if pair.get("chainId") != XRPL_CHAIN_ID:
        return None

    base = pair.get("baseToken") or {}
    symbol = str(base.get("symbol") or "").lstrip("$").upper()
    if symbol != token.symbol.upper():
        return None

    if token.issuer and token.issuer not in str(base.get("address") or ""):
        return None

    try:
        price = Decimal(str(pair.get("priceNative")))
    except (InvalidOperation, TypeError):
        return None

    if not price.is_finite() or price <= 0:
        return None
    return price


class SearchPriceSource(PriceSource):
    """Price from DexScreener token search, several terms at once."""

    def __init__(
        self,
        api_url: str = DEXSCREENER_API,
        search_terms: Optional[list[str]] = None,
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.search_terms = search_terms or ["{symbol} xrpl", "{symbol}"]
        self.timeout = timeout
        self._transport = transport
        self._background: set[asyncio.Task] = set()

    @property
    def name(self) -> str:
        return "DexScreener search"

    def terms_for(self, token: Token) -> list[str]:
        terms = []
        for template in self.search_terms:
            term = template.replace("{symbol}", token.symbol)
            if term not in terms:
                terms.append(term)
        return terms

    async def try_price(self, request: PriceRequest) -> Optional[Decimal]:
        token = request.token
        client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        searches = [
            asyncio.create_task(self._search(client, term, token))
            for term in self.terms_for(token)
        ]
        self._close_when_done(client, searches)

        pending = set(searches)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        while pending:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            done, pending = await asyncio.wait(
                pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                price = task.result()
                if price is not None:
                    return price

        if pending:
            logger.debug(f"Abandoning {len(pending)} outstanding search(es) for {token.symbol}")
        return None

    async def _search(
        self, client: httpx.AsyncClient, term: str, token: Token
    ) -> Optional[Decimal]:
        try:
            response = await client.get(f"{self.api_url}/search", params={"q": term})
            if response.status_code != 200:
                return None
            pairs = response.json().get("pairs") or []
        except Exception as e:
            logger.debug(f"Search '{term}' failed: {type(e).__name__}: {e}")
            return None

        for pair in pairs:
            price = match_pair_price(pair, token)
            if price is not None:
                return price
        return None

    def _close_when_done(self, client: httpx.AsyncClient, searches: list[asyncio.Task]) -> None:
        async def close():
            await asyncio.gather(*searches, return_exceptions=True)
            await client.aclose()

        closer = asyncio.create_task(close())
        self._background.add(closer)
        closer.add_done_callback(self._background.discard)
