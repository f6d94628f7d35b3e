"""Factory for building the price oracle with its source cascade.

Source priority (first success wins):
1. OnTheDex ticker (fast, pre-computed)
2. DexScreener search (broad token coverage)
3. XRPL order book (needs a ledger client)
4. XRPL AMM pool (needs a ledger client)
"""

import logging
from typing import Optional

from bearswap.config import get_settings
from bearswap.pricing.amm import AmmPriceSource
from bearswap.pricing.base import PriceCache, PriceOracle
from bearswap.pricing.order_book import OrderBookPriceSource
from bearswap.pricing.search import SearchPriceSource
from bearswap.pricing.ticker import TickerPriceSource

logger = logging.getLogger(__name__)


def create_http_sources() -> list:
    """Create the off-ledger HTTP price sources."""
    settings = get_settings()
    return [
        TickerPriceSource(
            api_url=settings.onthedex_api_url,
            timeout=settings.ticker_timeout,
        ),
        SearchPriceSource(
            api_url=settings.dexscreener_api_url,
            search_terms=settings.search_terms,
            timeout=settings.search_timeout,
        ),
    ]


def create_ledger_sources(ledger) -> list:
    """Create the on-ledger price sources."""
    settings = get_settings()
    return [
        OrderBookPriceSource(
            ledger,
            depth=settings.order_book_depth,
            timeout=settings.order_book_timeout,
        ),
        AmmPriceSource(ledger, timeout=settings.amm_timeout),
    ]


def create_price_oracle(ledger=None, cache: Optional[PriceCache] = None) -> PriceOracle:
    """Create a price oracle with every available source.

    Args:
        ledger: Ledger client for the on-ledger fallbacks (skipped if None)
        cache: Shared price cache (a new one with the configured TTL if None)
    """
    settings = get_settings()
    oracle = PriceOracle(cache=cache or PriceCache(ttl_seconds=settings.price_cache_ttl))

    for source in create_http_sources():
        oracle.add_source(source)

    if ledger is not None:
        for source in create_ledger_sources(ledger):
            oracle.add_source(source)
    else:
        logger.warning("No ledger client - order book and AMM fallbacks disabled")

    logger.info(f"Price oracle sources: {', '.join(s.name for s in oracle.sources)}")
    return oracle
