"""Request and response contracts for the HTTP API."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from bearswap.quote import SwapQuote
from bearswap.tokens import Token


class TokenModel(BaseModel):
    """A ledger asset. Omit ``issuer`` for XRP."""

    currency: str = Field(..., min_length=1, description="Currency code (3-char, hex or name)")
    issuer: Optional[str] = Field(None, description="Issuer address (None for XRP)")

    def to_token(self) -> Token:
        return Token(self.currency, self.issuer)


class QuoteRequest(BaseModel):
    """Request for a swap quote."""

    input_token: TokenModel = Field(..., description="Asset being sold")
    output_token: TokenModel = Field(..., description="Asset being bought")
    amount: Decimal = Field(..., description="Amount of input_token to swap")
    slippage_bps: Optional[int] = Field(
        default=None,
        description="Slippage tolerance in basis points (default from settings)",
    )
    fee_tier: Optional[str] = Field(
        default=None, description="Fee tier; resolved from account when omitted"
    )
    account: Optional[str] = Field(
        default=None, description="Trading account, used to resolve the fee tier"
    )


class QuoteResponse(BaseModel):
    """Response containing swap quote details."""

    success: bool = Field(..., description="Whether quote was successful")
    input_token: Optional[str] = Field(None, description="Input asset")
    output_token: Optional[str] = Field(None, description="Output asset")
    input_amount: Optional[Decimal] = Field(None, description="Input amount")
    output_amount: Optional[Decimal] = Field(None, description="Expected output after fee")
    exchange_rate: Optional[Decimal] = Field(None, description="Output per unit of input")
    fee_amount: Optional[Decimal] = Field(None, description="Fee in XRP")
    fee_tier: Optional[str] = Field(None, description="Fee tier applied")
    fee: Optional[str] = Field(None, description="Human-readable fee")
    slippage_bps: Optional[int] = Field(None, description="Slippage tolerance")
    minimum_received: Optional[Decimal] = Field(None, description="Guaranteed minimum output")
    price_impact_pct: Optional[Decimal] = Field(None, description="Estimated price impact (%)")
    expires_at: Optional[float] = Field(None, description="Quote expiry timestamp")
    error: Optional[str] = Field(None, description="Error message if failed")

    @classmethod
    def from_quote(cls, quote: SwapQuote) -> "QuoteResponse":
        data = quote.to_dict()
        return cls(
            success=True,
            input_token=data["input_token"],
            output_token=data["output_token"],
            input_amount=data["input_amount"],
            output_amount=data["output_amount"],
            exchange_rate=data["exchange_rate"],
            fee_amount=data["fee_amount"],
            fee_tier=data["fee_tier"],
            fee=data["fee"],
            slippage_bps=quote.slippage_bps,
            minimum_received=data["minimum_received"],
            price_impact_pct=data["price_impact_pct"],
            expires_at=quote.expires_at,
        )


class FeeTierInfo(BaseModel):
    """One fee tier."""

    tier: str
    name: str
    rate: Decimal
    percent: str


class FeeTierResponse(BaseModel):
    """Fee tier of an account."""

    success: bool
    address: str
    tier: Optional[FeeTierInfo] = None
    error: Optional[str] = None
