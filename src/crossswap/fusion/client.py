"""Async HTTP client for the Fusion+ proxy API.

Endpoints (relative to ``base_url``):
    POST /quote, GET /allowance, GET /approve-transaction,
    POST /build, POST /submit, GET /status, POST /secret

Every failure, whether transport, non-2xx or unparseable body, is raised as
``FusionApiError``. Callers in ``crossswap.swap`` convert it to the typed
swap error taxonomy.
"""

import logging
from typing import Any, Optional

import httpx

from crossswap.config import get_settings

logger = logging.getLogger(__name__)


class FusionApiError(Exception):
    """Raised when a Fusion+ API call fails.

    Attributes:
        status_code: HTTP status, or None for transport failures
        details: Raw upstream detail text, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    @property
    def text(self) -> str:
        """Message and details as one lowercase string for substring matching."""
        return f"{self.message} {self.details or ''}".lower()


class FusionPlusClient:
    """Client for the quote/allowance/approve/build/submit/status endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize client.

        Args:
            base_url: Proxy base URL (defaults to settings.fusion_api_url)
            api_key: Optional bearer token, only when talking to a protected proxy
            timeout: Request timeout in seconds
            http_client: Pre-built httpx client (tests inject a MockTransport here)
        """
        settings = get_settings()
        self.base_url = (base_url or settings.fusion_api_url).rstrip("/")
        self.api_key = api_key
        self.timeout = timeout or settings.http_timeout
        self._http_client = http_client

    def _get_headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> dict:
        url = f"{self.base_url}{path}"
        client = await self._get_client()

        try:
            response = await client.request(
                method, url, params=params, json=json, headers=self._get_headers()
            )
        except httpx.HTTPError as e:
            logger.warning(f"Fusion+ {method} {path} transport error: {e}")
            raise FusionApiError(f"Request to {path} failed: {e}") from e

        if response.status_code >= 400:
            message, details = self._parse_error(response)
            logger.warning(f"Fusion+ {method} {path} error: {response.status_code} - {message}")
            raise FusionApiError(message, status_code=response.status_code, details=details)

        try:
            data = response.json()
        except ValueError as e:
            raise FusionApiError(
                f"Invalid JSON from {path}", status_code=response.status_code, details=response.text
            ) from e

        if not isinstance(data, dict):
            raise FusionApiError(
                f"Unexpected response shape from {path}",
                status_code=response.status_code,
                details=response.text,
            )
        return data

    @staticmethod
    def _parse_error(response: httpx.Response) -> tuple[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}", response.text

        if isinstance(body, dict):
            message = body.get("error") or body.get("description") or f"HTTP {response.status_code}"
            details = body.get("details", body.get("description"))
            return str(message), details
        return f"HTTP {response.status_code}", body

    async def quote(
        self,
        src_chain: int,
        dst_chain: int,
        src_token: str,
        dst_token: str,
        amount: str,
        wallet: str,
        enable_estimate: bool = True,
    ) -> dict:
        return await self._request(
            "POST",
            "/quote",
            json={
                "srcChain": src_chain,
                "dstChain": dst_chain,
                "srcTokenAddress": src_token,
                "dstTokenAddress": dst_token,
                "amount": amount,
                "walletAddress": wallet,
                "enableEstimate": enable_estimate,
            },
        )

    async def allowance(self, token_address: str, wallet_address: str, chain_id: int) -> dict:
        return await self._request(
            "GET",
            "/allowance",
            params={
                "tokenAddress": token_address,
                "walletAddress": wallet_address,
                "chainId": chain_id,
            },
        )

    async def approve_transaction(self, token_address: str, chain_id: int) -> dict:
        return await self._request(
            "GET",
            "/approve-transaction",
            params={"tokenAddress": token_address, "chainId": chain_id},
        )

    async def build(
        self,
        quote: dict,
        src_chain: int,
        dst_chain: int,
        src_token: str,
        dst_token: str,
        amount: str,
        wallet: str,
    ) -> dict:
        return await self._request(
            "POST",
            "/build",
            json={
                "quote": quote,
                "srcChain": src_chain,
                "dstChain": dst_chain,
                "srcTokenAddress": src_token,
                "dstTokenAddress": dst_token,
                "amount": amount,
                "walletAddress": wallet,
            },
        )

    async def submit(
        self,
        order: dict,
        signature: str,
        extension: str,
        quote_id: str,
        src_chain: int,
        dst_chain: int,
    ) -> dict:
        return await self._request(
            "POST",
            "/submit",
            json={
                "order": order,
                "signature": signature,
                "extension": extension,
                "quoteId": quote_id,
                "srcChain": src_chain,
                "dstChain": dst_chain,
            },
        )

    async def status(self, order_hash: str, src_chain: int, dst_chain: int) -> dict:
        return await self._request(
            "GET",
            "/status",
            params={"orderHash": order_hash, "srcChain": src_chain, "dstChain": dst_chain},
        )

    async def submit_secret(
        self, order_hash: str, secret: str, src_chain: int, dst_chain: int
    ) -> dict:
        """Reveal an escrow secret for an order."""
        return await self._request(
            "POST",
            "/secret",
            json={
                "orderHash": order_hash,
                "secret": secret,
                "srcChain": src_chain,
                "dstChain": dst_chain,
            },
        )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
