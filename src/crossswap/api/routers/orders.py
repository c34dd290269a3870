"""Locally tracked order records."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from crossswap.api.dependencies import get_order_store
from crossswap.api.errors import ProxyError
from crossswap.ledger.store import OrderStore

router = APIRouter(prefix="/api/v1/orders", tags=["Orders"])


@router.get("")
async def list_orders(
    maker: Optional[str] = Query(None),
    chainId: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    store: OrderStore = Depends(get_order_store),
):
    """List order records, newest first."""
    try:
        records = await store.list_orders(maker=maker, chain_id=chainId, limit=limit)
    except ValueError as e:
        raise ProxyError(str(e)) from e
    return {"orders": [record.to_dict() for record in records], "count": len(records)}


@router.get("/{key}")
async def get_order(key: str, store: OrderStore = Depends(get_order_store)):
    record = await store.get(key)
    if record is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return record.to_dict()


@router.delete("/{key}")
async def dismiss_order(key: str, store: OrderStore = Depends(get_order_store)):
    """Remove an order from local tracking."""
    if not await store.delete(key):
        raise HTTPException(status_code=404, detail="Order not found")
    return {"deleted": True, "key": key}
