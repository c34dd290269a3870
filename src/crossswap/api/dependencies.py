"""Shared FastAPI dependencies."""

from typing import Optional

from crossswap.api.upstream import OneInchUpstream
from crossswap.ledger.database import get_session_factory
from crossswap.ledger.store import OrderStore

_upstream: Optional[OneInchUpstream] = None


def get_upstream() -> OneInchUpstream:
    """Get or create the shared upstream client."""
    global _upstream
    if _upstream is None:
        _upstream = OneInchUpstream()
    return _upstream


async def close_upstream() -> None:
    global _upstream
    if _upstream is not None:
        await _upstream.close()
        _upstream = None


def get_order_store() -> OrderStore:
    return OrderStore(get_session_factory())
