"""Token approval proxy endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from crossswap.api.dependencies import get_upstream
from crossswap.api.errors import ProxyError
from crossswap.api.upstream import OneInchUpstream

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Approve"])


@router.get("/allowance")
async def get_allowance(
    tokenAddress: Optional[str] = Query(None),
    walletAddress: Optional[str] = Query(None),
    chainId: Optional[int] = Query(None),
    upstream: OneInchUpstream = Depends(get_upstream),
):
    """Current allowance of the 1inch router for a token."""
    if not tokenAddress or not walletAddress or chainId is None:
        raise ProxyError("Missing required parameters: tokenAddress, walletAddress, chainId")

    data = await upstream.allowance(tokenAddress, walletAddress, chainId)
    return {"allowance": str(data.get("allowance", "0"))}


@router.get("/approve-transaction")
async def get_approve_transaction(
    tokenAddress: Optional[str] = Query(None),
    chainId: Optional[int] = Query(None),
    amount: Optional[str] = Query(None),
    upstream: OneInchUpstream = Depends(get_upstream),
):
    """Unsigned approve transaction for a token."""
    if not tokenAddress or chainId is None:
        raise ProxyError("Missing required parameters: tokenAddress, chainId")

    data = await upstream.approve_transaction(tokenAddress, chainId, amount)
    logger.info(f"Approve transaction for {tokenAddress} on chain {chainId} -> {data.get('to')}")
    return data
