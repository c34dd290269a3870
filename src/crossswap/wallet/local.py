"""Local wallet backend.

Uses an in-memory private key for signing. Suitable for:
- Development/testing
- Headless swap scripts

WARNING: The private key is held in memory. Browser or hardware wallets
should implement ``WalletBackend`` instead.
"""

import logging
from typing import Any, Optional

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3

from crossswap.config import get_settings
from crossswap.fusion.models import TxPayload
from crossswap.wallet.base import TxReceipt, WalletBackend, WalletError

logger = logging.getLogger(__name__)


def _hex(value: Any) -> str:
    """Render bytes-like values as 0x-prefixed hex."""
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return "0x" + bytes(value).hex()


class LocalWallet(WalletBackend):
    """Wallet backed by an eth_account key and per-chain async web3 providers."""

    def __init__(
        self,
        private_key: str,
        rpc_urls: Optional[dict[int, str]] = None,
        receipt_timeout: float = 180.0,
    ):
        self._account = Account.from_key(private_key)
        self.rpc_urls = rpc_urls or {}
        self.receipt_timeout = receipt_timeout
        self._web3_instances: dict[int, AsyncWeb3] = {}
        self._tx_chains: dict[str, int] = {}

    @classmethod
    def from_settings(cls) -> "LocalWallet":
        """Create wallet from WALLET_PRIVATE_KEY and configured RPC URLs."""
        settings = get_settings()
        if not settings.wallet_private_key:
            raise WalletError("WALLET_PRIVATE_KEY is not configured")
        return cls(
            private_key=settings.wallet_private_key,
            rpc_urls=settings.rpc_urls,
            receipt_timeout=settings.receipt_timeout,
        )

    def _web3(self, chain_id: int) -> AsyncWeb3:
        """Lazy load web3 instance for a chain."""
        if chain_id not in self._web3_instances:
            rpc_url = self.rpc_urls.get(chain_id)
            if not rpc_url:
                raise WalletError(f"No RPC URL configured for chain {chain_id}")
            self._web3_instances[chain_id] = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        return self._web3_instances[chain_id]

    async def get_address(self) -> str:
        return self._account.address

    async def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        message: dict[str, Any],
    ) -> str:
        # Integer fields travel as decimal strings; the encoder wants ints
        fields = types.get(primary_type, [])
        encoded = dict(message)
        for item in fields:
            if item["type"].startswith(("uint", "int")) and item["name"] in encoded:
                encoded[item["name"]] = int(encoded[item["name"]])

        message_types = {name: members for name, members in types.items() if name != "EIP712Domain"}

        try:
            signed = Account.sign_typed_data(
                self._account.key,
                domain_data=domain,
                message_types=message_types,
                message_data=encoded,
            )
        except Exception as e:
            raise WalletError(f"Typed data signing failed: {e}") from e

        return _hex(signed.signature)

    async def send_transaction(self, tx: TxPayload) -> str:
        w3 = self._web3(tx.chain_id)
        address = self._account.address

        try:
            nonce = await w3.eth.get_transaction_count(address, "pending")
            transaction = {
                "from": address,
                "to": tx.to,
                "data": tx.data,
                "value": tx.value,
                "chainId": tx.chain_id,
                "nonce": nonce,
                "gasPrice": tx.gas_price or await w3.eth.gas_price,
            }
            transaction["gas"] = await w3.eth.estimate_gas(transaction)
            transaction.pop("from")

            signed = self._account.sign_transaction(transaction)
            tx_hash = _hex(await w3.eth.send_raw_transaction(signed.raw_transaction))
        except WalletError:
            raise
        except Exception as e:
            logger.error(f"Failed to send transaction on chain {tx.chain_id}: {e}")
            raise WalletError(f"Failed to send transaction: {e}") from e

        self._tx_chains[tx_hash] = tx.chain_id
        logger.info(f"Sent transaction {tx_hash} on chain {tx.chain_id}")
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        chain_id = self._tx_chains.get(tx_hash)
        if chain_id is None:
            raise WalletError(f"Unknown transaction {tx_hash}")

        w3 = self._web3(chain_id)
        try:
            receipt = await w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            raise WalletError(f"Receipt for {tx_hash} not available: {e}") from e

        self._tx_chains.pop(tx_hash, None)
        return TxReceipt(
            tx_hash=tx_hash,
            success=receipt["status"] == 1,
            block_number=receipt.get("blockNumber"),
        )

    def __repr__(self) -> str:
        return f"LocalWallet(address={self._account.address})"
