"""Quote client for cross-chain swaps.

Requests a price quote for a (srcChain, dstChain, srcToken, dstToken, amount,
wallet) tuple and normalizes it into a ``Quote``. No retries: the
orchestrator's debounce controls how often this is called.
"""

import logging

from pydantic import ValidationError

from crossswap.fusion.client import FusionApiError, FusionPlusClient
from crossswap.fusion.errors import (
    AmountTooSmall,
    ChainGuardError,
    InvalidAmount,
    QuoteFailed,
    RouteUnavailable,
)
from crossswap.fusion.models import Quote, SwapRoute, is_positive_int_string

logger = logging.getLogger(__name__)

# Substrings the quoter uses in 4xx error bodies
AMOUNT_TOO_SMALL_MARKERS = ("minimum", "too small", "less than min")
ROUTE_UNAVAILABLE_MARKERS = (
    "not supported",
    "not available",
    "no route",
    "insufficient liquidity",
)


def classify_quote_error(error: FusionApiError) -> QuoteFailed:
    """Map an upstream quote failure to the most specific quote error."""
    if error.status_code is not None and 400 <= error.status_code < 500:
        text = error.text
        if any(marker in text for marker in AMOUNT_TOO_SMALL_MARKERS):
            return AmountTooSmall(details=error.message)
        if any(marker in text for marker in ROUTE_UNAVAILABLE_MARKERS):
            return RouteUnavailable(details=error.message)
    return QuoteFailed(details=error.message)


class QuoteClient:
    """Fetches Fusion+ quotes."""

    def __init__(self, client: FusionPlusClient):
        self.client = client

    async def get_quote(
        self,
        src_chain: int,
        dst_chain: int,
        src_token: str,
        dst_token: str,
        amount_raw: str,
        wallet_address: str,
    ) -> Quote:
        """Get a quote.

        Args:
            src_chain: Source chain id
            dst_chain: Destination chain id (must differ from src_chain)
            src_token: Source token address
            dst_token: Destination token address
            amount_raw: Amount in raw token units as a positive integer string
            wallet_address: Maker wallet address

        Raises:
            ChainGuardError: src_chain == dst_chain (no request is made)
            InvalidAmount: amount_raw is not a positive integer string
            RouteUnavailable / AmountTooSmall / QuoteFailed: upstream failure
        """
        if src_chain == dst_chain:
            raise ChainGuardError()
        if not is_positive_int_string(amount_raw):
            raise InvalidAmount()

        try:
            route = SwapRoute(
                src_chain=src_chain,
                dst_chain=dst_chain,
                src_token=src_token,
                dst_token=dst_token,
                amount=amount_raw,
                wallet=wallet_address,
            )
        except ValidationError as e:
            raise QuoteFailed("Invalid token or wallet address", details=str(e)) from e

        return await self.quote_route(route)

    async def quote_route(self, route: SwapRoute) -> Quote:
        """Get a quote for an already validated route."""
        if not route.is_cross_chain:
            raise ChainGuardError()
        if not is_positive_int_string(route.amount):
            raise InvalidAmount()

        logger.info(
            f"Requesting quote: {route.amount} {route.src_token} (chain {route.src_chain}) -> "
            f"{route.dst_token} (chain {route.dst_chain})"
        )

        try:
            data = await self.client.quote(
                src_chain=route.src_chain,
                dst_chain=route.dst_chain,
                src_token=route.src_token,
                dst_token=route.dst_token,
                amount=route.amount,
                wallet=route.wallet,
            )
        except FusionApiError as e:
            error = classify_quote_error(e)
            logger.warning(f"Quote failed ({type(error).__name__}): {e.message}")
            raise error from e

        try:
            quote = Quote.from_response(data, route)
        except ValidationError as e:
            raise QuoteFailed("Malformed quote response", details=str(e)) from e

        logger.info(f"Quote {quote.quote_id}: {quote.src_amount} -> {quote.dst_amount}")
        return quote
