"""Order builder.

Turns a quote into signable typed data plus the order extension. The quote
is forwarded to the proxy verbatim, exactly as the quoter returned it.
"""

import logging

from pydantic import ValidationError

from crossswap.fusion.client import FusionApiError, FusionPlusClient
from crossswap.fusion.errors import (
    BuildFailed,
    ChainGuardError,
    InvalidBuildResponse,
    QuoteExpired,
)
from crossswap.fusion.models import BuiltOrder, Quote

logger = logging.getLogger(__name__)

QUOTE_EXPIRED_MARKERS = ("expired", "not found")


class OrderBuilder:
    """Builds Fusion+ orders from quotes."""

    def __init__(self, client: FusionPlusClient):
        self.client = client

    async def build_order(
        self,
        quote: Quote,
        src_chain: int,
        dst_chain: int,
        src_token: str,
        dst_token: str,
        amount_raw: str,
        wallet_address: str,
    ) -> BuiltOrder:
        """Build an order for a quote.

        The route arguments must describe the same swap the quote was priced
        for.

        Raises:
            ChainGuardError: src_chain == dst_chain
            QuoteExpired: upstream no longer recognizes the quote
            BuildFailed: other upstream failure
            InvalidBuildResponse: response lacks typed data or extension
        """
        if src_chain == dst_chain:
            raise ChainGuardError()
        if quote is None:
            raise ValueError("build_order requires a quote")

        route = quote.route
        requested = (
            src_chain,
            dst_chain,
            src_token.lower(),
            dst_token.lower(),
            amount_raw,
            wallet_address.lower(),
        )
        priced = (
            route.src_chain,
            route.dst_chain,
            route.src_token.lower(),
            route.dst_token.lower(),
            route.amount,
            route.wallet.lower(),
        )
        if requested != priced:
            raise ValueError(f"quote {quote.quote_id} was priced for a different route")

        logger.info(f"Building order for quote {quote.quote_id}")

        try:
            data = await self.client.build(
                quote.raw,
                src_chain=route.src_chain,
                dst_chain=route.dst_chain,
                src_token=route.src_token,
                dst_token=route.dst_token,
                amount=route.amount,
                wallet=route.wallet,
            )
        except FusionApiError as e:
            if e.status_code == 404 or any(marker in e.text for marker in QUOTE_EXPIRED_MARKERS):
                logger.warning(f"Quote {quote.quote_id} expired: {e.message}")
                raise QuoteExpired(details=e.message) from e
            logger.error(f"Build failed: {e.message}")
            raise BuildFailed(details=e.message) from e

        try:
            built = BuiltOrder.model_validate(data)
        except ValidationError as e:
            logger.error(f"Invalid build response for quote {quote.quote_id}: {e}")
            raise InvalidBuildResponse(details=str(e)) from e

        logger.info(
            f"Built order for quote {quote.quote_id} "
            f"(extension {len(built.extension)} chars, hash {built.order_hash})"
        )
        return built

    async def build_for_quote(self, quote: Quote) -> BuiltOrder:
        """Build an order for the route the quote carries."""
        route = quote.route
        return await self.build_order(
            quote,
            route.src_chain,
            route.dst_chain,
            route.src_token,
            route.dst_token,
            route.amount,
            route.wallet,
        )
