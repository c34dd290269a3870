"""Wallet backends consumed by the swap core."""

from crossswap.wallet.base import (
    TxReceipt,
    WalletBackend,
    WalletError,
    WalletRejectedError,
    is_user_rejection,
)
from crossswap.wallet.local import LocalWallet

__all__ = [
    "TxReceipt",
    "WalletBackend",
    "WalletError",
    "WalletRejectedError",
    "is_user_rejection",
    "LocalWallet",
]
