"""EIP-712 order signing.

The signing domain always uses the source chain id; orders signed with the
destination chain id are rejected by the settlement contract.
"""

import logging
from typing import Any

from pydantic import ValidationError

from crossswap.fusion.errors import SignatureRejected, SigningFailed
from crossswap.fusion.models import BuiltOrder, OrderTypedData, SignedOrder
from crossswap.wallet.base import WalletBackend, is_user_rejection

logger = logging.getLogger(__name__)

ORDER_PRIMARY_TYPE = "Order"

ORDER_TYPES = {
    "Order": [
        {"name": "salt", "type": "uint256"},
        {"name": "makerAsset", "type": "address"},
        {"name": "takerAsset", "type": "address"},
        {"name": "maker", "type": "address"},
        {"name": "receiver", "type": "address"},
        {"name": "makingAmount", "type": "uint256"},
        {"name": "takingAmount", "type": "uint256"},
        {"name": "makerTraits", "type": "uint256"},
    ]
}


def build_signing_domain(typed_data: OrderTypedData, src_chain: int) -> dict[str, Any]:
    """Signing domain from the builder's name/version/contract and the source chain."""
    domain = typed_data.domain
    return {
        "name": domain.name,
        "version": domain.version,
        "chainId": src_chain,
        "verifyingContract": domain.verifying_contract,
    }


class OrderSigner:
    """Signs built orders with the injected wallet."""

    def __init__(self, wallet: WalletBackend):
        self.wallet = wallet

    async def sign_order(self, typed_data: OrderTypedData, src_chain: int) -> str:
        """Sign order typed data.

        Raises:
            SignatureRejected: user declined (recoverable)
            SigningFailed: any other wallet failure or a malformed signature
        """
        domain = build_signing_domain(typed_data, src_chain)
        message = typed_data.message.to_message()

        try:
            signature = await self.wallet.sign_typed_data(
                domain, ORDER_TYPES, ORDER_PRIMARY_TYPE, message
            )
        except Exception as e:
            if is_user_rejection(e):
                logger.info("Order signature rejected by user")
                raise SignatureRejected() from e
            logger.error(f"Order signing failed: {e}")
            raise SigningFailed(details=str(e)) from e

        logger.info(f"Order signed on chain {src_chain} by {typed_data.message.maker}")
        return signature

    async def sign(self, built: BuiltOrder, src_chain: int) -> SignedOrder:
        """Sign a built order and pair it with its signature."""
        signature = await self.sign_order(built.typed_data, src_chain)
        try:
            return SignedOrder(built=built, signature=signature)
        except ValidationError as e:
            raise SigningFailed("Wallet returned a malformed signature", details=str(e)) from e
