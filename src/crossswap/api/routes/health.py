"""Health check endpoints."""

import logging

from fastapi import APIRouter
from sqlalchemy import text

from crossswap import __version__
from crossswap.config import get_settings
from crossswap.ledger.database import get_engine

logger = logging.getLogger(__name__)

router = APIRouter()


async def _database_reachable() -> bool:
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Order store health check failed: {e}")
        return False


@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "crossswap"}


@router.get("/health/detailed")
async def detailed_health():
    """Proxy readiness: upstream key present and order store reachable."""
    settings = get_settings()
    checks = {
        "upstream_key": bool(settings.oneinch_api_key),
        "order_store": await _database_reachable(),
    }
    return {
        "status": "healthy" if all(checks.values()) else "degraded",
        "service": "crossswap",
        "version": __version__,
        "checks": checks,
        "config": settings.get_safe_dict(),
    }
