"""Pytest configuration and fixtures."""

import asyncio
import copy
import os
from collections import defaultdict
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from eth_account import Account
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ONEINCH_API_KEY"] = ""
os.environ["WALLET_PRIVATE_KEY"] = ""
os.environ["DEBUG"] = "true"

from crossswap.fusion.models import OrderStatus, TxPayload
from crossswap.ledger.models import Base
from crossswap.ledger.store import OrderStore
from crossswap.notifications import Notifier
from crossswap.wallet.base import TxReceipt, WalletBackend

TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
WALLET = Account.from_key(TEST_PRIVATE_KEY).address

SRC_CHAIN = 1
DST_CHAIN = 42161
SRC_TOKEN = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
DST_TOKEN = "0xaf88d065e77c8cc2239327c5edb3a432268e5831"
SETTLEMENT = "0x111111125421ca6dc452d289314280a0f8842a65"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

AMOUNT = "1000000"
ORDER_HASH = "0x" + "ab" * 32
EXTENSION = "0x" + "de" * 40
SIGNATURE = "0x" + "1b" * 65
TX_HASH = "0x" + "cd" * 32


def quote_response(quote_id: str = "quote-1", dst_amount: str = "999000") -> dict:
    return {
        "quoteId": quote_id,
        "srcTokenAmount": AMOUNT,
        "dstTokenAmount": dst_amount,
        "presets": {"fast": {"secretsCount": 1, "auctionDuration": 180}},
        "recommendedPreset": "fast",
    }


def build_response(extension: str = EXTENSION, domain_chain: int = SRC_CHAIN) -> dict:
    return {
        "typedData": {
            "domain": {
                "name": "1inch Aggregation Router",
                "version": "6",
                "chainId": domain_chain,
                "verifyingContract": SETTLEMENT,
            },
            "message": {
                "salt": "9445680530224831104421385512",
                "makerAsset": SRC_TOKEN,
                "takerAsset": DST_TOKEN,
                "maker": WALLET,
                "receiver": ZERO_ADDRESS,
                "makingAmount": AMOUNT,
                "takingAmount": "999000",
                "makerTraits": "62419173104490761595518734106557662061518414611782227068396304425790442831872",
            },
            "primaryType": "Order",
        },
        "orderHash": ORDER_HASH,
        "extension": extension,
    }


class FakeFusionApi:
    """Scripted stand-in for FusionPlusClient.

    Queued responses are consumed in order, then the default is used. A
    queued exception is raised; a queued coroutine function is awaited and
    its result used.
    """

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self._queued: dict[str, list] = defaultdict(list)
        self.defaults: dict[str, Any] = {
            "quote": quote_response(),
            "allowance": {"allowance": AMOUNT},
            "approve_transaction": {
                "to": SRC_TOKEN,
                "data": "0x095ea7b3",
                "value": "0",
                "gasPrice": "20000000000",
            },
            "build": build_response(),
            "submit": {"orderHash": ORDER_HASH},
            "status": {"status": "pending"},
            "submit_secret": {"success": True},
        }

    def queue(self, name: str, *responses) -> None:
        self._queued[name].extend(responses)

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def last(self, name: str) -> dict:
        return [kwargs for call, kwargs in self.calls if call == name][-1]

    async def _respond(self, name: str, **kwargs) -> dict:
        self.calls.append((name, kwargs))
        response = self._queued[name].pop(0) if self._queued[name] else self.defaults[name]
        if callable(response):
            response = await response()
        if isinstance(response, BaseException):
            raise response
        return copy.deepcopy(response)

    async def quote(self, src_chain, dst_chain, src_token, dst_token, amount, wallet, enable_estimate=True):
        return await self._respond(
            "quote",
            src_chain=src_chain,
            dst_chain=dst_chain,
            src_token=src_token,
            dst_token=dst_token,
            amount=amount,
            wallet=wallet,
        )

    async def allowance(self, token_address, wallet_address, chain_id):
        return await self._respond(
            "allowance", token_address=token_address, wallet_address=wallet_address, chain_id=chain_id
        )

    async def approve_transaction(self, token_address, chain_id):
        return await self._respond("approve_transaction", token_address=token_address, chain_id=chain_id)

    async def build(self, quote, src_chain, dst_chain, src_token, dst_token, amount, wallet):
        return await self._respond(
            "build",
            quote=quote,
            src_chain=src_chain,
            dst_chain=dst_chain,
            src_token=src_token,
            dst_token=dst_token,
            amount=amount,
            wallet=wallet,
        )

    async def submit(self, order, signature, extension, quote_id, src_chain, dst_chain):
        return await self._respond(
            "submit",
            order=order,
            signature=signature,
            extension=extension,
            quote_id=quote_id,
            src_chain=src_chain,
            dst_chain=dst_chain,
        )

    async def status(self, order_hash, src_chain, dst_chain):
        return await self._respond(
            "status", order_hash=order_hash, src_chain=src_chain, dst_chain=dst_chain
        )

    async def submit_secret(self, order_hash, secret, src_chain, dst_chain):
        return await self._respond("submit_secret", order_hash=order_hash, secret=secret)

    async def close(self):
        pass


class FakeWallet(WalletBackend):
    """Wallet double recording every request."""

    def __init__(self, address: str = WALLET):
        self.address = address
        self.signature = SIGNATURE
        self.sign_error: Exception | None = None
        self.send_error: Exception | None = None
        self.receipt_success = True
        self.sign_requests: list[dict] = []
        self.sent: list[TxPayload] = []

    async def get_address(self) -> str:
        return self.address

    async def sign_typed_data(self, domain, types, primary_type, message) -> str:
        self.sign_requests.append(
            {"domain": domain, "types": types, "primary_type": primary_type, "message": message}
        )
        if self.sign_error is not None:
            raise self.sign_error
        return self.signature

    async def send_transaction(self, tx: TxPayload) -> str:
        self.sent.append(tx)
        if self.send_error is not None:
            raise self.send_error
        return TX_HASH

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        return TxReceipt(tx_hash=tx_hash, success=self.receipt_success, block_number=100)



class BlockingStore:
    """Wraps an OrderStore; saving a filled record waits until released."""

    def __init__(self, store):
        self.store = store
        self.blocked = asyncio.Event()
        self.release = asyncio.Event()

    async def save(self, record):
        if record.status == OrderStatus.FILLED:
            self.blocked.set()
            await self.release.wait()
        return await self.store.save(record)

    def __getattr__(self, name):
        return getattr(self.store, name)

@pytest.fixture
def fusion_api() -> FakeFusionApi:
    return FakeFusionApi()


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def order_store(session_factory) -> OrderStore:
    return OrderStore(session_factory)
