"""Application configuration using pydantic-settings.

All swap fees are collected in XRP and routed to the treasury wallet
configured here (or split with a referrer).
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # XRP Ledger
    # ======================
    ledger_rpc_url: str = Field(
        default="https://s1.ripple.com:51234/", description="rippled JSON-RPC URL"
    )
    ledger_request_timeout: float = Field(
        default=15.0, description="Timeout for a single JSON-RPC request (seconds)"
    )
    ledger_poll_interval: float = Field(
        default=1.0, description="Seconds between validation polls after submit"
    )
    ledger_last_ledger_offset: int = Field(
        default=20, description="LastLedgerSequence offset applied by autofill"
    )

    # ======================
    # Price sources
    # ======================
    onthedex_api_url: str = Field(
        default="https://api.onthedex.live/public/v1", description="OnTheDex ticker API"
    )
    dexscreener_api_url: str = Field(
        default="https://api.dexscreener.com/latest/dex", description="DexScreener search API"
    )
    ticker_timeout: float = Field(default=3.0, description="Ticker source timeout (seconds)")
    search_timeout: float = Field(default=3.0, description="Search source timeout (seconds)")
    order_book_timeout: float = Field(default=5.0, description="Order book source timeout (seconds)")
    amm_timeout: float = Field(default=5.0, description="AMM source timeout (seconds)")
    search_term_templates: str = Field(
        default="{symbol} xrpl,{symbol}",
        description="Comma-separated search terms; {symbol} is replaced by the token symbol",
    )
    order_book_depth: int = Field(default=20, description="Offers requested from book_offers")
    price_cache_ttl: float = Field(default=5.0, description="Price cache TTL (seconds)")

    # ======================
    # Quotes & fees
    # ======================
    quote_ttl_seconds: int = Field(default=30, description="Quote validity window")
    default_slippage_bps: int = Field(default=50, description="Default slippage (0.5%)")
    treasury_address: str = Field(
        default="rBEARKfWJS1LYdg2g6t99BgbvpWY5pgMB9",
        description="Treasury wallet receiving swap fees",
    )
    base_reserve: Decimal = Field(default=Decimal("1"), description="Account base reserve in XRP")
    network_fee_buffer: Decimal = Field(
        default=Decimal("0.01"), description="Buffer for network fees and owner reserves (XRP)"
    )
    trust_line_limit: str = Field(
        default="100000000000", description="Limit used for new trust lines"
    )

    # ======================
    # Fee tiers (NFT holders)
    # ======================
    fee_nft_issuer: str = Field(default="", description="Issuer of fee-discount NFTs")
    ultra_rare_taxons: str = Field(
        default="1,2,3,4,5", description="Comma-separated NFT taxons granting the premium tier"
    )

    # ======================
    # Referrals
    # ======================
    referral_api_url: str = Field(
        default="http://localhost:3001", description="Referral backend base URL"
    )
    referral_timeout: float = Field(default=5.0, description="Referral lookup timeout (seconds)")
    referral_cache_path: Optional[str] = Field(
        default=None, description="JSON file backing the local referrer cache"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def search_terms(self) -> list[str]:
        """Parse search term templates into a list."""
        return [t.strip() for t in self.search_term_templates.split(",") if t.strip()]

    @property
    def ultra_rare_taxon_ids(self) -> list[int]:
        """Parse ultra-rare taxons into a list of integers."""
        if not self.ultra_rare_taxons:
            return []
        return [int(t.strip()) for t in self.ultra_rare_taxons.split(",") if t.strip()]

    def get_safe_dict(self) -> dict:
        """Return settings dict suitable for diagnostics."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "ledger": {
                "rpc": self.ledger_rpc_url,
                "timeout": self.ledger_request_timeout,
            },
            "pricing": {
                "onthedex": self.onthedex_api_url,
                "dexscreener": self.dexscreener_api_url,
                "cache_ttl": self.price_cache_ttl,
                "order_book_depth": self.order_book_depth,
            },
            "fees": {
                "treasury": self.treasury_address,
                "base_reserve": str(self.base_reserve),
                "network_fee_buffer": str(self.network_fee_buffer),
                "nft_issuer": self.fee_nft_issuer or "(not set)",
            },
            "quotes": {
                "ttl_seconds": self.quote_ttl_seconds,
                "default_slippage_bps": self.default_slippage_bps,
            },
            "referrals": {
                "api": self.referral_api_url,
                "cache": self.referral_cache_path or "(memory)",
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
