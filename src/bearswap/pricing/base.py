"""Price oracle: a ranked cascade of price sources with a short-lived cache.

Every price is expressed as XRP per 1 unit of the token.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Optional

from bearswap.errors import NoPriceAvailableError
from bearswap.tokens import NATIVE, Token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceRequest:
    """What is being priced, plus the trade it is priced for.

    The order book and AMM sources need the trade direction and size;
    the HTTP sources only look at ``token``.
    """

    token: Token
    input_token: Token
    output_token: Token
    input_amount: Decimal

    @classmethod
    def nominal(cls, token: Token, amount: Decimal = Decimal("1")) -> "PriceRequest":
        """Price ``token`` by buying it with ``amount`` XRP."""
        return cls(token=token, input_token=NATIVE, output_token=token, input_amount=amount)

    @property
    def is_input_native(self) -> bool:
        return self.input_token.is_native

    def price_from_fill(self, consumed_input: Decimal, output: Decimal) -> Optional[Decimal]:
        """Convert an executed (input, output) pair into XRP per token."""
        if consumed_input <= 0 or output <= 0:
            return None
        if self.is_input_native:
            return consumed_input / output
        return output / consumed_input


@dataclass
class PriceCacheEntry:
    token_key: str
    price: Decimal
    fetched_at: float


class PriceCache:
    """Token price cache with a fixed TTL. Last write wins."""

    def __init__(self, ttl_seconds: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, PriceCacheEntry] = {}

    def get(self, token: Token) -> Optional[Decimal]:
        entry = self._entries.get(token.key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            return None
        return entry.price

    def set(self, token: Token, price: Decimal) -> None:
        self._entries[token.key] = PriceCacheEntry(
            token_key=token.key, price=price, fetched_at=self._clock()
        )

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class PriceSource(ABC):
    """A single place a price can come from."""

    timeout: float = 3.0

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name identifier."""
        pass

    @abstractmethod
    async def try_price(self, request: PriceRequest) -> Optional[Decimal]:
        """
        Try to price ``request.token`` in XRP.

        Args:
            request: Token to price and the trade context

        Returns:
            XRP per 1 token, or None if this source has no answer
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(timeout={self.timeout})"


class PriceOracle:
    """Resolves token prices by walking the source list until one answers."""

    def __init__(
        self,
        sources: Optional[list[PriceSource]] = None,
        cache: Optional[PriceCache] = None,
    ):
        self.sources: list[PriceSource] = sources or []
        self.cache = cache if cache is not None else PriceCache()

    def add_source(self, source: PriceSource) -> None:
        """Append a source at the lowest priority."""
        self.sources.append(source)

    async def price_of(
        self,
        token: Token,
        request: Optional[PriceRequest] = None,
    ) -> Decimal:
        """Get the price of 1 ``token`` in XRP.

        Raises:
            NoPriceAvailableError: every source failed or timed out
        """
        if token.is_native:
            return Decimal("1")

        cached = self.cache.get(token)
        if cached is not None:
            logger.debug(f"Price cache hit for {token.symbol}: {cached}")
            return cached

        request = request or PriceRequest.nominal(token)
        tried = []

        for source in self.sources:
            tried.append(source.name)
            try:
                price = await asyncio.wait_for(source.try_price(request), timeout=source.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"{source.name} timed out after {source.timeout}s for {token.symbol}")
                continue
            except Exception as e:
                logger.warning(f"{source.name} price failed for {token.symbol}: {type(e).__name__}: {e}")
                continue

            if price is None or price <= 0:
                logger.debug(f"{source.name} had no price for {token.symbol}")
                continue

            logger.info(f"Price for {token.symbol} from {source.name}: {price} XRP")
            self.cache.set(token, price)
            return price

        logger.error(f"No price available for {token} (tried: {', '.join(tried)})")
        raise NoPriceAvailableError(token.symbol, tried)
