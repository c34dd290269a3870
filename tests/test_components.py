"""Component tests for notifications, debouncing, the local wallet and settings."""

import asyncio
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from conftest import (
    AMOUNT,
    DST_TOKEN,
    SETTLEMENT,
    SRC_CHAIN,
    SRC_TOKEN,
    TEST_PRIVATE_KEY,
    TX_HASH,
    WALLET,
    ZERO_ADDRESS,
)
from crossswap.config import Settings
from crossswap.notifications import NotificationLevel, Notifier
from crossswap.swap.signer import ORDER_PRIMARY_TYPE, ORDER_TYPES
from crossswap.utils.debounce import Debouncer
from crossswap.wallet.base import WalletError, WalletRejectedError, is_user_rejection
from crossswap.wallet.local import LocalWallet


class TestNotifier:
    """Tests for the single-slot notifier."""

    def test_new_notification_replaces_current(self):
        notifier = Notifier()
        received = []
        notifier.subscribe(received.append)

        notifier.loading("Sending approval…")
        notifier.success("Approval successful! You can now bridge tokens.")

        assert notifier.current.level == NotificationLevel.SUCCESS
        assert len(notifier.history) == 2
        # Loading toast is cleared before the success toast is shown
        assert [n.level if n else None for n in received] == [
            NotificationLevel.LOADING,
            None,
            NotificationLevel.SUCCESS,
        ]

    def test_clear(self):
        notifier = Notifier()
        received = []
        notifier.subscribe(received.append)

        notifier.error("Failed to create order")
        notifier.clear()
        notifier.clear()

        assert notifier.current is None
        assert received[-1] is None
        assert received.count(None) == 1

    def test_unsubscribe(self):
        notifier = Notifier()
        received = []
        unsubscribe = notifier.subscribe(received.append)

        unsubscribe()
        notifier.info("Cross-chain order was cancelled.")

        assert received == []

    def test_listener_failure_isolated(self):
        notifier = Notifier()
        broken = MagicMock(side_effect=RuntimeError("listener exploded"))
        healthy = MagicMock()
        notifier.subscribe(broken)
        notifier.subscribe(healthy)

        notification = notifier.warning("Quote expired. Please request a new quote.")

        broken.assert_called_once_with(notification)
        healthy.assert_called_once_with(notification)


class TestDebouncer:
    """Tests for the async debouncer."""

    @pytest.mark.asyncio
    async def test_last_trigger_wins(self):
        calls = []

        async def callback(value):
            calls.append(value)

        debouncer = Debouncer(0.02, callback)
        debouncer.trigger("1")
        debouncer.trigger("10")
        debouncer.trigger("100")
        assert debouncer.pending

        await asyncio.sleep(0.1)

        assert calls == ["100"]
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_cancel_drops_waiting_call(self):
        calls = []

        async def callback():
            calls.append(True)

        debouncer = Debouncer(0.02, callback)
        debouncer.trigger()
        debouncer.cancel()
        await asyncio.sleep(0.05)

        assert calls == []

    @pytest.mark.asyncio
    async def test_running_call_not_aborted(self):
        started = asyncio.Event()
        release = asyncio.Event()
        finished = []

        async def callback():
            started.set()
            await release.wait()
            finished.append(True)

        debouncer = Debouncer(0.0, callback)
        debouncer.trigger()
        await started.wait()

        debouncer.cancel()
        debouncer.trigger()
        debouncer.cancel()
        release.set()
        await debouncer.flush()

        assert finished == [True]

    @pytest.mark.asyncio
    async def test_callback_error_logged(self):
        async def callback():
            raise RuntimeError("boom")

        debouncer = Debouncer(0.0, callback)
        debouncer.trigger()
        await asyncio.sleep(0.01)
        await debouncer.flush()

        assert not debouncer.pending


class TestLocalWallet:
    """Tests for the private-key wallet backend."""

    def order_message(self) -> dict:
        return {
            "salt": "9445680530224831104421385512",
            "makerAsset": SRC_TOKEN,
            "takerAsset": DST_TOKEN,
            "maker": WALLET,
            "receiver": ZERO_ADDRESS,
            "makingAmount": AMOUNT,
            "takingAmount": "999000",
            "makerTraits": "0",
        }

    @pytest.mark.asyncio
    async def test_address(self):
        wallet = LocalWallet(TEST_PRIVATE_KEY)

        assert await wallet.get_address() == WALLET

    @pytest.mark.asyncio
    async def test_sign_typed_data_recovers_to_wallet(self):
        wallet = LocalWallet(TEST_PRIVATE_KEY)
        domain = {
            "name": "1inch Aggregation Router",
            "version": "6",
            "chainId": SRC_CHAIN,
            "verifyingContract": SETTLEMENT,
        }
        message = self.order_message()

        signature = await wallet.sign_typed_data(domain, ORDER_TYPES, ORDER_PRIMARY_TYPE, message)

        assert signature.startswith("0x")
        assert len(signature) == 132

        encoded = {
            key: int(value) if key in ("salt", "makingAmount", "takingAmount", "makerTraits") else value
            for key, value in message.items()
        }
        signable = encode_typed_data(
            domain_data=domain, message_types=ORDER_TYPES, message_data=encoded
        )
        assert Account.recover_message(signable, signature=signature) == WALLET

    @pytest.mark.asyncio
    async def test_unknown_transaction_receipt(self):
        wallet = LocalWallet(TEST_PRIVATE_KEY)

        with pytest.raises(WalletError):
            await wallet.wait_for_receipt(TX_HASH)

    @pytest.mark.asyncio
    async def test_missing_rpc_url(self):
        wallet = LocalWallet(TEST_PRIVATE_KEY, rpc_urls={})

        with pytest.raises(WalletError):
            wallet._web3(SRC_CHAIN)

    def test_from_settings_requires_key(self):
        # WALLET_PRIVATE_KEY is empty in the test environment
        with pytest.raises(WalletError):
            LocalWallet.from_settings()

    def test_user_rejection_detection(self):
        assert is_user_rejection(WalletRejectedError("declined"))
        assert is_user_rejection(Exception("MetaMask: User rejected the request."))
        assert not is_user_rejection(WalletError("insufficient funds for gas"))


class TestSettings:
    """Tests for settings."""

    def test_safe_dict_redacts_secrets(self):
        settings = Settings(
            oneinch_api_key="secret-key",
            wallet_private_key=TEST_PRIVATE_KEY,
            database_url="postgresql+asyncpg://user:password@db:5432/crossswap",
        )

        safe = settings.get_safe_dict()

        assert safe["oneinch"]["api_key"] == "***"
        assert safe["wallet_configured"] is True
        assert "password" not in safe["database_url"]
        assert "secret-key" not in str(safe)
        assert TEST_PRIVATE_KEY not in str(safe)

    def test_rpc_lookup(self):
        settings = Settings(arbitrum_rpc_url="https://arb.example")

        assert settings.get_rpc_url(42161) == "https://arb.example"
        assert 1 in settings.rpc_urls
