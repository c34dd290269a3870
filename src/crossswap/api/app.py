"""FastAPI application factory for the Fusion+ proxy."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from crossswap import __version__
from crossswap.api.dependencies import close_upstream
from crossswap.api.errors import ProxyError, proxy_error_handler, validation_error_handler
from crossswap.config import get_settings
from crossswap.ledger.database import close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the order table on startup; release the upstream client and engine on shutdown."""
    settings = get_settings()
    await init_db()
    logger.info(f"Fusion+ proxy ready, forwarding to {settings.oneinch_api_url}")
    if not settings.oneinch_api_key:
        logger.warning("ONEINCH_API_KEY not set - 1inch will reject forwarded requests")
    yield
    await close_upstream()
    await close_db()
    logger.info("Fusion+ proxy stopped")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="CrossSwap API",
        description="Fusion+ cross-chain swap proxy",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # Browser wallets call the proxy directly; it only reads, builds and relays
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    from crossswap.api.routers import approve, fusion_plus, orders
    from crossswap.api.routes import health

    app.include_router(health.router, tags=["Health"])
    app.include_router(fusion_plus.router)
    app.include_router(approve.router)
    app.include_router(orders.router)

    return app
