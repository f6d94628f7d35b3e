"""Fee tiers and the fee policy.

Fee Tiers:
- Standard: 0.589% (no fee NFT)
- Discounted: 0.485% (holds any fee NFT)
- Premium: 0.321% (holds an ultra-rare fee NFT)

Fees are always denominated in XRP.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from bearswap.config import get_settings
from bearswap.ledger.client import LedgerRequestError

logger = logging.getLogger(__name__)


class FeeTier(str, Enum):
    """Discount tier of the trading account."""

    STANDARD = "standard"
    DISCOUNTED = "discounted"
    PREMIUM = "premium"

    @classmethod
    def parse(cls, value: Union["FeeTier", str, None]) -> "FeeTier":
        """Parse a tier name, falling back to STANDARD for anything unknown."""
        if isinstance(value, FeeTier):
            return value
        if not value:
            return cls.STANDARD
        name = str(value).strip().lower()
        try:
            return cls(name)
        except ValueError:
            return _TIER_ALIASES.get(name, cls.STANDARD)


# Names used by the wallet frontend
_TIER_ALIASES = {
    "regular": FeeTier.STANDARD,
    "pixel_bear": FeeTier.DISCOUNTED,
    "ultra_rare": FeeTier.PREMIUM,
}

FEE_RATES: dict[FeeTier, Decimal] = {
    FeeTier.STANDARD: Decimal("0.00589"),
    FeeTier.DISCOUNTED: Decimal("0.00485"),
    FeeTier.PREMIUM: Decimal("0.00321"),
}

TIER_NAMES: dict[FeeTier, str] = {
    FeeTier.STANDARD: "Regular",
    FeeTier.DISCOUNTED: "Pixel Bear",
    FeeTier.PREMIUM: "Ultra Rare",
}


def rate_of(tier: Union[FeeTier, str, None]) -> Decimal:
    """Get the fee rate for a tier.

    Unknown tiers get the standard (highest) rate.
    """
    if not isinstance(tier, FeeTier):
        tier = FeeTier.parse(tier)
    return FEE_RATES.get(tier, FEE_RATES[FeeTier.STANDARD])


def format_fee_percent(tier: Union[FeeTier, str, None]) -> str:
    """Format a tier's rate as a percentage string, e.g. "0.589%"."""
    percent = (rate_of(tier) * 100).normalize()
    return f"{percent:f}%"


def tier_name(tier: Union[FeeTier, str, None]) -> str:
    """Display name for a fee tier."""
    return TIER_NAMES[FeeTier.parse(tier)]


def format_fee_amount(amount: Decimal) -> str:
    """Format an XRP fee amount for display."""
    return f"{amount:.6f} XRP"


def describe_fee(tier: Union[FeeTier, str, None], amount: Decimal) -> str:
    """One-line fee description, e.g. "0.589000 XRP (0.589%, Regular)"."""
    return f"{format_fee_amount(amount)} ({format_fee_percent(tier)}, {tier_name(tier)})"


class FeeTierResolver:
    """Determines an account's fee tier from its NFT holdings."""

    def __init__(
        self,
        ledger,
        nft_issuer: Optional[str] = None,
        ultra_rare_taxons: Optional[list[int]] = None,
    ):
        settings = get_settings()
        self.ledger = ledger
        self.nft_issuer = nft_issuer if nft_issuer is not None else settings.fee_nft_issuer
        self.ultra_rare_taxons = set(
            ultra_rare_taxons if ultra_rare_taxons is not None else settings.ultra_rare_taxon_ids
        )

    async def resolve(self, address: str) -> FeeTier:
        """Get the fee tier for an account."""
        if not self.nft_issuer:
            return FeeTier.STANDARD

        nfts: list[dict] = []
        marker = None
        try:
            while True:
                params = {"account": address, "ledger_index": "validated", "limit": 400}
                if marker:
                    params["marker"] = marker
                result = await self.ledger.request("account_nfts", params)
                nfts.extend(result.get("account_nfts", []))
                marker = result.get("marker")
                if not marker:
                    break
        except LedgerRequestError as e:
            if e.code == "actNotFound":
                return FeeTier.STANDARD
            raise

        held = [nft for nft in nfts if nft.get("Issuer") == self.nft_issuer]
        if not held:
            return FeeTier.STANDARD

        if any(nft.get("NFTokenTaxon") in self.ultra_rare_taxons for nft in held):
            tier = FeeTier.PREMIUM
        else:
            tier = FeeTier.DISCOUNTED

        logger.info(f"{address} holds {len(held)} fee NFT(s): tier {tier.value}")
        return tier
