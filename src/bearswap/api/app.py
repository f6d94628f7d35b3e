"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bearswap.config import get_settings
from bearswap.fees import FeeTierResolver
from bearswap.ledger.client import LedgerClient
from bearswap.quote import QuoteBuilder
from bearswap.swap.factory import create_quote_builder

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    ledger = None
    if getattr(app.state, "quote_builder", None) is None or getattr(
        app.state, "fee_resolver", None
    ) is None:
        ledger = LedgerClient()
        app.state.ledger = ledger
        if getattr(app.state, "quote_builder", None) is None:
            app.state.quote_builder = create_quote_builder(ledger)
        if getattr(app.state, "fee_resolver", None) is None:
            app.state.fee_resolver = FeeTierResolver(ledger)
        logger.info(f"Ledger client connected to {ledger.rpc_url}")
    yield
    # Shutdown
    if ledger is not None:
        await ledger.close()


def create_app(
    quote_builder: Optional[QuoteBuilder] = None,
    fee_resolver: Optional[FeeTierResolver] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        quote_builder: Use this builder instead of creating one at startup
        fee_resolver: Use this resolver instead of creating one at startup
    """
    settings = get_settings()

    app = FastAPI(
        title="BearSwap API",
        description="XRPL swap quotes and fee tiers",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.quote_builder = quote_builder
    app.state.fee_resolver = fee_resolver

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    from bearswap.api.routes import fees, health, quotes

    app.include_router(health.router, tags=["Health"])
    app.include_router(quotes.router, prefix="/api/v1")
    app.include_router(fees.router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
