"""Order submission to the Fusion+ relayer."""

import logging

from pydantic import ValidationError

from crossswap.fusion.client import FusionApiError, FusionPlusClient
from crossswap.fusion.errors import ChainGuardError, ExtensionMismatch, SubmissionFailed
from crossswap.fusion.models import OrderStatus, SignedOrder, SubmitResult

logger = logging.getLogger(__name__)


class OrderSubmitter:
    """Submits signed orders."""

    def __init__(self, client: FusionPlusClient):
        self.client = client

    async def submit_order(
        self,
        signed: SignedOrder,
        extension: str,
        quote_id: str,
        src_chain: int,
        dst_chain: int,
    ) -> SubmitResult:
        """Submit a signed order.

        Args:
            signed: Typed data and signature from the signer
            extension: Extension returned by the builder for this order
            quote_id: Id of the quote the order was built from
            src_chain: Source chain id
            dst_chain: Destination chain id

        Raises:
            ChainGuardError: src_chain == dst_chain
            ExtensionMismatch: extension differs from the built one (no request is made)
            SubmissionFailed: relayer rejected the order or the request failed
        """
        if src_chain == dst_chain:
            raise ChainGuardError()
        if extension != signed.extension:
            logger.error(f"Extension mismatch for quote {quote_id}")
            raise ExtensionMismatch()

        order = signed.typed_data.message.to_message()
        logger.info(f"Submitting order for quote {quote_id} ({src_chain} -> {dst_chain})")

        try:
            data = await self.client.submit(
                order=order,
                signature=signed.signature,
                extension=extension,
                quote_id=quote_id,
                src_chain=src_chain,
                dst_chain=dst_chain,
            )
        except FusionApiError as e:
            logger.error(f"Order submission failed: {e.message}")
            raise SubmissionFailed(details=e.message) from e

        try:
            status = OrderStatus(data.get("status") or OrderStatus.CREATED.value)
        except ValueError:
            status = OrderStatus.CREATED

        order_hash = data.get("orderHash") or signed.built.order_hash
        try:
            result = SubmitResult(order_hash=order_hash, status=status)
        except ValidationError as e:
            raise SubmissionFailed("Submit response missing order hash", details=str(e)) from e

        logger.info(f"Order submitted: {result.order_hash} ({result.status.value})")
        return result
