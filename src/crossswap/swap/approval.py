"""Approval flow.

Obtains an unsigned approve transaction from the proxy, sends it through the
wallet and waits for the receipt.
"""

import logging

from pydantic import ValidationError

from crossswap.fusion.client import FusionApiError, FusionPlusClient
from crossswap.fusion.errors import ApprovalRequestFailed, ApprovalTxFailed
from crossswap.fusion.models import TxPayload
from crossswap.wallet.base import TxReceipt, WalletBackend, is_user_rejection

logger = logging.getLogger(__name__)


class ApprovalFlow:
    """Token approval for the settlement contract."""

    def __init__(self, client: FusionPlusClient, wallet: WalletBackend):
        self.client = client
        self.wallet = wallet

    async def request_approval_transaction(self, token_address: str, chain: int) -> TxPayload:
        """Fetch the unsigned approve transaction for a token.

        The payload is bound to ``chain`` and ``value`` defaults to zero.

        Raises:
            ApprovalRequestFailed: network failure or malformed payload
        """
        try:
            data = await self.client.approve_transaction(token_address, chain)
        except FusionApiError as e:
            logger.error(f"Approval request error: {e.message}")
            raise ApprovalRequestFailed(details=e.message) from e

        try:
            payload = TxPayload.model_validate({**data, "chainId": chain})
        except ValidationError as e:
            raise ApprovalRequestFailed("Malformed approval transaction", details=str(e)) from e

        logger.info(f"Approval transaction for {token_address} on chain {chain} -> {payload.to}")
        return payload

    async def send(self, payload: TxPayload) -> str:
        """Send the approve transaction; returns the tx hash."""
        try:
            tx_hash = await self.wallet.send_transaction(payload)
        except Exception as e:
            if is_user_rejection(e):
                raise ApprovalTxFailed("Approval was rejected", details=str(e)) from e
            raise ApprovalTxFailed(details=str(e)) from e

        logger.info(f"Approval sent: {tx_hash}")
        return tx_hash

    async def confirm(self, tx_hash: str) -> TxReceipt:
        """Wait for the approve receipt.

        Raises:
            ApprovalTxFailed: the receipt could not be obtained or the tx reverted
        """
        try:
            receipt = await self.wallet.wait_for_receipt(tx_hash)
        except Exception as e:
            raise ApprovalTxFailed(details=str(e)) from e

        if not receipt.success:
            raise ApprovalTxFailed("Approval transaction reverted", details=tx_hash)

        logger.info(f"Approval confirmed: {tx_hash} (block {receipt.block_number})")
        return receipt
