"""Fusion+ contract layer: value objects, error taxonomy and the HTTP client."""

from crossswap.fusion.client import FusionApiError, FusionPlusClient
from crossswap.fusion.models import (
    NATIVE_TOKEN,
    BuiltOrder,
    OrderRecord,
    OrderStatus,
    Quote,
    SignedOrder,
    StatusResult,
    SubmitResult,
    SwapRoute,
    TxPayload,
)

__all__ = [
    "FusionApiError",
    "FusionPlusClient",
    "NATIVE_TOKEN",
    "BuiltOrder",
    "OrderRecord",
    "OrderStatus",
    "Quote",
    "SignedOrder",
    "StatusResult",
    "SubmitResult",
    "SwapRoute",
    "TxPayload",
]
