"""1inch Fusion+ and approve API client used by the proxy.

This is the only place that holds the 1inch API key. Status-specific error
messages follow the upstream documentation.
"""

import logging
import secrets
from typing import Any, Optional

import httpx
from web3 import Web3

from crossswap.api.errors import UpstreamError
from crossswap.config import get_settings

logger = logging.getLogger(__name__)

QUOTER_PATH = "/fusion-plus/quoter/v1.0"
RELAYER_PATH = "/fusion-plus/relayer/v1.0"
SWAP_PATH = "/swap/v6.0"

RATE_LIMITED = "Rate limit exceeded"
INVALID_KEY = "Invalid API key"

QUOTE_ERRORS = {
    400: "Cross-chain route not available for this token pair or insufficient liquidity",
    401: INVALID_KEY,
    404: "Token pair not supported for cross-chain swaps",
    429: RATE_LIMITED,
}
BUILD_ERRORS = {
    400: "Invalid build parameters",
    401: INVALID_KEY,
    404: "Quote not found or expired",
    429: RATE_LIMITED,
}
SUBMIT_ERRORS = {
    400: "Invalid order parameters or signature",
    401: INVALID_KEY,
    403: "Order rejected by 1inch",
    429: RATE_LIMITED,
}
STATUS_ERRORS = {
    401: INVALID_KEY,
    404: "Order not found",
    429: RATE_LIMITED,
}
SECRET_ERRORS = {
    400: "Invalid secret or orderHash",
    401: INVALID_KEY,
    403: "Secret submission not allowed for this order",
    404: "Order not found",
    429: RATE_LIMITED,
}
APPROVE_ERRORS = {
    400: "Invalid token or wallet address",
    401: INVALID_KEY,
    429: RATE_LIMITED,
}


def generate_secrets(count: int = 1) -> tuple[list[str], list[str]]:
    """Generate random 32-byte escrow secrets and their keccak256 hashes."""
    if count < 1:
        raise ValueError("secret count must be positive")
    secret_list = ["0x" + secrets.token_hex(32) for _ in range(count)]
    hash_list = [Web3.to_hex(Web3.keccak(hexstr=secret)) for secret in secret_list]
    return secret_list, hash_list


class OneInchUpstream:
    """Async client for the 1inch endpoints the proxy forwards to."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.oneinch_api_key
        self.base_url = (base_url or settings.oneinch_api_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout
        self._http_client = http_client

        if not self.api_key:
            logger.warning("ONEINCH_API_KEY not set - upstream requests will be rejected")

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def _request(
        self,
        method: str,
        path: str,
        default_error: str,
        errors: dict[int, str],
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        allow_empty: bool = False,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        client = await self._get_client()

        try:
            response = await client.request(
                method, url, params=params, json=json, headers=self._get_headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"1inch {method} {path} failed: {e}")
            raise UpstreamError(default_error, status_code=502, details=str(e)) from e

        if response.status_code >= 400:
            logger.warning(f"1inch {method} {path} error: {response.status_code} - {response.text}")
            raise UpstreamError(
                errors.get(response.status_code, default_error),
                status_code=response.status_code,
                details=response.text,
            )

        # Submit and secret endpoints answer with an empty body on success
        if not response.content.strip():
            if allow_empty:
                return {"success": True}
            raise UpstreamError("Empty response from 1inch", status_code=502)

        try:
            data = response.json()
        except ValueError as e:
            if allow_empty:
                return {"success": True}
            raise UpstreamError(
                "Invalid response from 1inch", status_code=502, details=response.text
            ) from e

        if not isinstance(data, dict):
            raise UpstreamError("Invalid response from 1inch", status_code=502, details=data)
        return data

    async def quote(
        self,
        src_chain: int,
        dst_chain: int,
        src_token: str,
        dst_token: str,
        amount: str,
        wallet: str,
        enable_estimate: bool = True,
    ) -> dict[str, Any]:
        params = {
            "srcChain": src_chain,
            "dstChain": dst_chain,
            "srcTokenAddress": src_token,
            "dstTokenAddress": dst_token,
            "amount": amount,
            "walletAddress": wallet,
            "enableEstimate": "true" if enable_estimate else "false",
        }
        return await self._request(
            "GET",
            f"{QUOTER_PATH}/quote/receive",
            "Failed to get Fusion+ quote",
            QUOTE_ERRORS,
            params=params,
        )

    async def build(
        self,
        quote: dict[str, Any],
        src_chain: int,
        dst_chain: int,
        src_token: str,
        dst_token: str,
        amount: str,
        wallet: str,
        secrets_hash_list: list[str],
    ) -> dict[str, Any]:
        params = {
            "srcChain": src_chain,
            "dstChain": dst_chain,
            "srcTokenAddress": src_token,
            "dstTokenAddress": dst_token,
            "amount": amount,
            "walletAddress": wallet,
        }
        return await self._request(
            "POST",
            f"{QUOTER_PATH}/quote/build",
            "Failed to build Fusion+ order",
            BUILD_ERRORS,
            params=params,
            json={"quote": quote, "secretsHashList": secrets_hash_list},
        )

    async def submit(
        self,
        order: dict[str, Any],
        signature: str,
        extension: str,
        quote_id: str,
        src_chain: int,
        secret_hashes: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        payload = {
            "order": order,
            "signature": signature,
            "quoteId": quote_id,
            "extension": extension,
            "srcChainId": src_chain,
        }
        if secret_hashes:
            payload["secretHashes"] = secret_hashes
        return await self._request(
            "POST",
            f"{RELAYER_PATH}/submit",
            "Failed to submit Fusion+ order",
            SUBMIT_ERRORS,
            json=payload,
            allow_empty=True,
        )

    async def order_status(self, order_hash: str) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{RELAYER_PATH}/order/status/{order_hash}",
            "Failed to get Fusion+ order status",
            STATUS_ERRORS,
        )

    async def submit_secret(self, order_hash: str, secret: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"{RELAYER_PATH}/order/secret",
            "Failed to submit secret",
            SECRET_ERRORS,
            json={"orderHash": order_hash, "secret": secret},
            allow_empty=True,
        )

    async def allowance(self, token_address: str, wallet_address: str, chain_id: int) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{SWAP_PATH}/{chain_id}/approve/allowance",
            "Failed to check allowance",
            APPROVE_ERRORS,
            params={"tokenAddress": token_address, "walletAddress": wallet_address},
        )

    async def approve_transaction(
        self, token_address: str, chain_id: int, amount: Optional[str] = None
    ) -> dict[str, Any]:
        params = {"tokenAddress": token_address}
        if amount:
            params["amount"] = amount
        return await self._request(
            "GET",
            f"{SWAP_PATH}/{chain_id}/approve/transaction",
            "Failed to get approve transaction",
            APPROVE_ERRORS,
            params=params,
        )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
