"""Health check endpoints."""

from fastapi import APIRouter, Request

from bearswap.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "bearswap"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Detailed health check with configuration and price sources."""
    settings = get_settings()
    builder = getattr(request.app.state, "quote_builder", None)
    sources = [s.name for s in builder.oracle.sources] if builder is not None else []
    return {
        "status": "healthy",
        "service": "bearswap",
        "version": "0.1.0",
        "price_sources": sources,
        "config": settings.get_safe_dict(),
    }
