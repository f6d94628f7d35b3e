"""Quote endpoints."""

import logging

from fastapi import APIRouter, Request

from bearswap.api.contracts import QuoteRequest, QuoteResponse
from bearswap.config import get_settings
from bearswap.errors import QuoteError
from bearswap.fees import FeeTier
from bearswap.ledger.client import LedgerRequestError
from bearswap.tokens import is_valid_address

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])


@router.post("", response_model=QuoteResponse)
async def create_quote(body: QuoteRequest, request: Request) -> QuoteResponse:
    """Get a swap quote.

    This is a READ-ONLY operation - no transactions are built or submitted.
    """
    builder = request.app.state.quote_builder
    resolver = request.app.state.fee_resolver

    try:
        input_token = body.input_token.to_token()
        output_token = body.output_token.to_token()
    except ValueError as e:
        return QuoteResponse(success=False, error=str(e))

    tier = body.fee_tier
    if tier is None and body.account and is_valid_address(body.account):
        try:
            tier = await resolver.resolve(body.account)
        except LedgerRequestError as e:
            logger.warning(f"Fee tier lookup failed for {body.account}: {e}")
            tier = FeeTier.STANDARD

    slippage_bps = body.slippage_bps
    if slippage_bps is None:
        slippage_bps = get_settings().default_slippage_bps

    try:
        quote = await builder.build_quote(
            input_token, output_token, body.amount, slippage_bps, fee_tier=tier
        )
    except QuoteError as e:
        return QuoteResponse(success=False, error=str(e))

    return QuoteResponse.from_quote(quote)
