"""Price discovery for XRPL tokens.

Sources:
- OnTheDex ticker
- DexScreener search
- XRPL order book (book_offers)
- XRPL AMM pool (amm_info)
"""

from bearswap.pricing.amm import AmmPriceSource, constant_product_output
from bearswap.pricing.base import (
    PriceCache,
    PriceCacheEntry,
    PriceOracle,
    PriceRequest,
    PriceSource,
)
from bearswap.pricing.factory import create_price_oracle
from bearswap.pricing.order_book import BookFill, OrderBookPriceSource, walk_order_book
from bearswap.pricing.search import SearchPriceSource
from bearswap.pricing.ticker import TickerPriceSource

__all__ = [
    # Base classes
    "PriceCache",
    "PriceCacheEntry",
    "PriceOracle",
    "PriceRequest",
    "PriceSource",
    # Sources
    "TickerPriceSource",
    "SearchPriceSource",
    "OrderBookPriceSource",
    "AmmPriceSource",
    # Helpers
    "BookFill",
    "walk_order_book",
    "constant_product_output",
    "create_price_oracle",
]
