"""Factories wiring quote building and execution from settings."""

import logging
from typing import Optional

from bearswap.config import get_settings
from bearswap.pricing.base import PriceCache
from bearswap.pricing.factory import create_price_oracle
from bearswap.quote import QuoteBuilder
from bearswap.referrals import ReferralCache, ReferralLookup
from bearswap.swap.executor import SwapExecutor
from bearswap.swap.trustline import TrustlineProvisioner

logger = logging.getLogger(__name__)


def create_quote_builder(ledger=None, cache: Optional[PriceCache] = None) -> QuoteBuilder:
    """Create a quote builder backed by the full price cascade."""
    settings = get_settings()
    return QuoteBuilder(
        create_price_oracle(ledger, cache=cache),
        quote_ttl_seconds=settings.quote_ttl_seconds,
    )


def create_swap_executor(ledger, referrals: Optional[ReferralLookup] = None) -> SwapExecutor:
    """Create a swap executor using the configured treasury and reserves."""
    settings = get_settings()
    if referrals is None:
        referrals = ReferralLookup(
            api_url=settings.referral_api_url,
            cache=ReferralCache(settings.referral_cache_path),
            timeout=settings.referral_timeout,
        )

    logger.info(f"Swap executor: treasury {settings.treasury_address}")
    return SwapExecutor(
        ledger,
        trustlines=TrustlineProvisioner(ledger, limit=settings.trust_line_limit),
        referrals=referrals,
        treasury=settings.treasury_address,
        base_reserve=settings.base_reserve,
        network_fee_buffer=settings.network_fee_buffer,
    )
