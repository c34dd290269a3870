"""Wallet capability interface.

The swap core never holds keys. It asks an injected wallet to:
1. Report the connected address
2. Sign EIP-712 typed data
3. Send an unsigned transaction
4. Wait for the transaction receipt
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from crossswap.fusion.models import TxPayload

logger = logging.getLogger(__name__)


@dataclass
class TxReceipt:
    """Outcome of a mined transaction.

    Attributes:
        tx_hash: Transaction hash
        success: Whether the transaction executed without reverting
        block_number: Block the transaction was included in
    """
    tx_hash: str
    success: bool
    block_number: Optional[int] = None


class WalletBackend(ABC):
    """Abstract base class for wallet backends."""

    @abstractmethod
    async def get_address(self) -> str:
        """Get the connected account address."""
        pass

    @abstractmethod
    async def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        message: dict[str, Any],
    ) -> str:
        """Sign EIP-712 typed data.

        Returns:
            65-byte signature as 0x-prefixed hex

        Raises:
            WalletRejectedError: If the user declined the request
        """
        pass

    @abstractmethod
    async def send_transaction(self, tx: TxPayload) -> str:
        """Sign and broadcast a transaction.

        Returns:
            Transaction hash
        """
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """Wait until the transaction is mined."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class WalletError(Exception):
    """Exception raised when a wallet operation fails."""
    pass


class WalletRejectedError(WalletError):
    """Exception raised when the user declines a wallet request."""
    pass


def is_user_rejection(error: BaseException) -> bool:
    """Check whether an exception represents a user-declined wallet request."""
    if isinstance(error, WalletRejectedError):
        return True
    return "user rejected" in str(error).lower()
