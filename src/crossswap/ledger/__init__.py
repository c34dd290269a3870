"""Persisted cross-chain order records."""

from crossswap.ledger.database import close_db, get_session_factory, init_db
from crossswap.ledger.models import Base, CrossChainOrder
from crossswap.ledger.repository import OrderRepository
from crossswap.ledger.store import OrderStore

__all__ = [
    "Base",
    "CrossChainOrder",
    "OrderRepository",
    "OrderStore",
    "close_db",
    "get_session_factory",
    "init_db",
]
