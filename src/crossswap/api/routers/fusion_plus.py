"""Fusion+ proxy endpoints: quote, build, submit, status, secret."""

import logging
import re
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from crossswap.api.dependencies import get_upstream
from crossswap.api.errors import ProxyError
from crossswap.api.upstream import OneInchUpstream, generate_secrets
from crossswap.fusion.models import is_positive_int_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Fusion+"])

ORDER_FIELDS = (
    "salt",
    "makerAsset",
    "takerAsset",
    "maker",
    "receiver",
    "makingAmount",
    "takingAmount",
    "makerTraits",
)

_HASH_32 = re.compile(r"^0x[0-9a-fA-F]{64}$")


def require(values: dict[str, Any]) -> None:
    """Reject the request with 400 when any value is missing."""
    missing = [name for name, value in values.items() if value in (None, "")]
    if missing:
        raise ProxyError(f"Missing required parameters: {', '.join(missing)}")


def check_hash(value: str, name: str) -> None:
    if not _HASH_32.match(value):
        raise ProxyError(
            f"Invalid {name} format. Must be a 66-character hex string starting with 0x"
        )


# Request models
class QuoteRequest(BaseModel):
    srcChain: Optional[int] = None
    dstChain: Optional[int] = None
    srcTokenAddress: Optional[str] = None
    dstTokenAddress: Optional[str] = None
    amount: Optional[str] = None
    walletAddress: Optional[str] = None
    enableEstimate: bool = True


class BuildRequest(BaseModel):
    quote: Optional[dict[str, Any]] = None
    srcChain: Optional[int] = None
    dstChain: Optional[int] = None
    srcTokenAddress: Optional[str] = None
    dstTokenAddress: Optional[str] = None
    amount: Optional[str] = None
    walletAddress: Optional[str] = None
    secretsHashList: Optional[list[str]] = None


class SubmitRequest(BaseModel):
    order: Optional[dict[str, Any]] = None
    signature: Optional[str] = None
    extension: Optional[str] = None
    quoteId: Optional[str] = None
    srcChain: Optional[int] = None
    dstChain: Optional[int] = None
    secretHashes: Optional[list[str]] = None


class SecretRequest(BaseModel):
    orderHash: Optional[str] = None
    secret: Optional[str] = None
    srcChain: Optional[int] = None
    dstChain: Optional[int] = None


def _secrets_count(quote: dict[str, Any]) -> int:
    """Secrets needed by the recommended preset (one per partial fill)."""
    presets = quote.get("presets") or {}
    preset = presets.get(quote.get("recommendedPreset") or "", {})
    count = preset.get("secretsCount", 1) if isinstance(preset, dict) else 1
    return count if isinstance(count, int) and count > 0 else 1


@router.post("/quote")
async def get_quote(
    request: QuoteRequest,
    upstream: OneInchUpstream = Depends(get_upstream),
):
    """Get a cross-chain quote."""
    require(
        {
            "srcChain": request.srcChain,
            "dstChain": request.dstChain,
            "srcTokenAddress": request.srcTokenAddress,
            "dstTokenAddress": request.dstTokenAddress,
            "amount": request.amount,
            "walletAddress": request.walletAddress,
        }
    )
    if request.srcChain == request.dstChain:
        raise ProxyError(
            "Source and destination chain IDs must be different for cross-chain swaps"
        )
    if not is_positive_int_string(request.amount):
        raise ProxyError("Amount must be greater than 0")

    data = await upstream.quote(
        src_chain=request.srcChain,
        dst_chain=request.dstChain,
        src_token=request.srcTokenAddress,
        dst_token=request.dstTokenAddress,
        amount=request.amount,
        wallet=request.walletAddress,
        enable_estimate=request.enableEstimate,
    )
    logger.info(
        f"Fusion+ quote {data.get('quoteId')}: {request.srcChain} -> {request.dstChain}, "
        f"dst amount {data.get('dstTokenAmount')}"
    )
    return {
        **data,
        "crossChainInfo": {
            "srcChain": request.srcChain,
            "dstChain": request.dstChain,
            "swapType": "fusion-plus",
        },
    }


@router.post("/build")
async def build_order(
    request: BuildRequest,
    upstream: OneInchUpstream = Depends(get_upstream),
):
    """Build an order from a quote.

    When ``secretsHashList`` is omitted, fresh secrets are generated and
    returned alongside their hashes; the caller must keep them to reveal
    after escrow deployment.
    """
    require(
        {
            "quote": request.quote,
            "srcChain": request.srcChain,
            "dstChain": request.dstChain,
            "srcTokenAddress": request.srcTokenAddress,
            "dstTokenAddress": request.dstTokenAddress,
            "amount": request.amount,
            "walletAddress": request.walletAddress,
        }
    )
    if not request.quote.get("quoteId"):
        raise ProxyError("Invalid quote object - missing quoteId")

    order_secrets: list[str] = []
    hash_list = request.secretsHashList
    if not hash_list:
        order_secrets, hash_list = generate_secrets(_secrets_count(request.quote))

    data = await upstream.build(
        quote=request.quote,
        src_chain=request.srcChain,
        dst_chain=request.dstChain,
        src_token=request.srcTokenAddress,
        dst_token=request.dstTokenAddress,
        amount=request.amount,
        wallet=request.walletAddress,
        secrets_hash_list=hash_list,
    )

    extension = data.get("extension") or ""
    logger.info(
        f"Fusion+ order built for quote {request.quote.get('quoteId')} "
        f"(typedData={'typedData' in data}, extension {len(extension)} chars)"
    )
    return {**data, "secrets": order_secrets, "secretHashList": hash_list}


@router.post("/submit")
async def submit_order(
    request: SubmitRequest,
    upstream: OneInchUpstream = Depends(get_upstream),
):
    """Submit a signed order to the relayer."""
    require({"order": request.order, "signature": request.signature, "quoteId": request.quoteId})
    if request.srcChain is not None and request.srcChain == request.dstChain:
        raise ProxyError(
            "Source and destination chain IDs must be different for cross-chain swaps"
        )

    # Accept either the bare order message or the full typed data
    message = request.order.get("message", request.order)
    missing = [name for name in ORDER_FIELDS if name not in message]
    if missing:
        raise ProxyError(f"Missing required order field: {missing[0]}")
    order = {name: message[name] for name in ORDER_FIELDS}

    data = await upstream.submit(
        order=order,
        signature=request.signature,
        extension=request.extension or "0x",
        quote_id=request.quoteId,
        src_chain=request.srcChain,
        secret_hashes=request.secretHashes,
    )
    logger.info(f"Fusion+ order submitted for quote {request.quoteId}")
    return data


@router.get("/status")
async def get_status(
    orderHash: Optional[str] = Query(None),
    srcChain: Optional[int] = Query(None),
    dstChain: Optional[int] = Query(None),
    upstream: OneInchUpstream = Depends(get_upstream),
):
    """Get the status of a submitted order."""
    if not orderHash:
        raise ProxyError("Missing required parameter: orderHash")
    check_hash(orderHash, "orderHash")

    data = await upstream.order_status(orderHash)
    logger.debug(f"Fusion+ status {orderHash}: {data.get('status')}")
    return {**data, "orderHash": data.get("orderHash", orderHash)}


@router.post("/secret")
async def submit_secret(
    request: SecretRequest,
    upstream: OneInchUpstream = Depends(get_upstream),
):
    """Reveal an escrow secret for an order."""
    require({"orderHash": request.orderHash, "secret": request.secret})
    check_hash(request.orderHash, "orderHash")
    check_hash(request.secret, "secret")

    data = await upstream.submit_secret(request.orderHash, request.secret)
    logger.info(f"Fusion+ secret submitted for order {request.orderHash}")
    return {**data, "orderHash": request.orderHash, "secretSubmitted": True}
