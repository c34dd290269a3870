"""Cross-chain swap lifecycle components."""

from crossswap.swap.allowance import AllowanceGate
from crossswap.swap.approval import ApprovalFlow
from crossswap.swap.builder import OrderBuilder
from crossswap.swap.orchestrator import SwapOrchestrator, SwapPhase, SwapSelection
from crossswap.swap.poller import OrderStatusPoller, PollHandle
from crossswap.swap.quotes import QuoteClient
from crossswap.swap.signer import OrderSigner
from crossswap.swap.submitter import OrderSubmitter

__all__ = [
    "AllowanceGate",
    "ApprovalFlow",
    "OrderBuilder",
    "OrderSigner",
    "OrderStatusPoller",
    "OrderSubmitter",
    "PollHandle",
    "QuoteClient",
    "SwapOrchestrator",
    "SwapPhase",
    "SwapSelection",
]
