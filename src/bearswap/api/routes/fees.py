"""Fee tier endpoints."""

import logging

from fastapi import APIRouter, Request

from bearswap.api.contracts import FeeTierInfo, FeeTierResponse
from bearswap.fees import FeeTier, format_fee_percent, rate_of, tier_name
from bearswap.ledger.client import LedgerRequestError
from bearswap.tokens import is_valid_address

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fees", tags=["Fees"])


def _tier_info(tier: FeeTier) -> FeeTierInfo:
    return FeeTierInfo(
        tier=tier.value,
        name=tier_name(tier),
        rate=rate_of(tier),
        percent=format_fee_percent(tier),
    )


@router.get("/tiers")
async def list_tiers() -> dict:
    """List all fee tiers and their rates."""
    return {
        "success": True,
        "tiers": [_tier_info(tier).model_dump(mode="json") for tier in FeeTier],
    }


@router.get("/tier/{address}", response_model=FeeTierResponse)
async def get_tier(address: str, request: Request) -> FeeTierResponse:
    """Get the fee tier an account qualifies for."""
    if not is_valid_address(address):
        return FeeTierResponse(success=False, address=address, error="Invalid XRPL address")

    try:
        tier = await request.app.state.fee_resolver.resolve(address)
    except LedgerRequestError as e:
        logger.warning(f"Fee tier lookup failed for {address}: {e}")
        return FeeTierResponse(success=False, address=address, error=str(e))

    return FeeTierResponse(success=True, address=address, tier=_tier_info(tier))
