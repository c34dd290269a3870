"""Tests for order status polling."""

import asyncio

import pytest

from conftest import DST_CHAIN, DST_TOKEN, ORDER_HASH, SRC_CHAIN, SRC_TOKEN, WALLET, BlockingStore
from crossswap.fusion.client import FusionApiError
from crossswap.fusion.models import OrderRecord, OrderStatus
from crossswap.notifications import NotificationLevel
from crossswap.swap.poller import OrderStatusPoller

FAST = 0.01
SLOW = 60.0


def make_record(order_hash: str = ORDER_HASH) -> OrderRecord:
    return OrderRecord(
        quote_id="quote-1",
        src_chain=SRC_CHAIN,
        dst_chain=DST_CHAIN,
        maker=WALLET,
        src_token=SRC_TOKEN,
        dst_token=DST_TOKEN,
        src_amount="1000000",
        dst_amount="999000",
        order_hash=order_hash,
    )


async def wait_for(handle, timeout: float = 2.0):
    await asyncio.wait_for(handle.wait(), timeout)


class TestOrderStatusPoller:
    @pytest.mark.asyncio
    async def test_polls_until_filled(self, fusion_api, notifier, order_store):
        fusion_api.queue(
            "status",
            {"status": "pending"},
            {"status": "src-deployed"},
            {"status": "dst-deployed"},
            {"status": "executed"},
        )
        updates = []
        terminal = []
        poller = OrderStatusPoller(fusion_api, order_store, notifier, interval=FAST)

        handle = poller.start(make_record(), on_update=updates.append, on_terminal=terminal.append)
        await wait_for(handle)

        assert [r.progress for r in updates] == [25, 40, 80, 100]
        assert handle.record.status == OrderStatus.FILLED
        assert terminal == [handle.record]
        assert poller.active is None
        assert fusion_api.count("status") == 4

        stored = await order_store.get(ORDER_HASH)
        assert stored.status == OrderStatus.FILLED
        assert stored.progress == 100

        successes = [n for n in notifier.history if n.level == NotificationLevel.SUCCESS]
        assert [n.message for n in successes] == ["Cross-chain swap completed successfully!"]

    @pytest.mark.asyncio
    async def test_terminal_transition_applied_once(self, fusion_api, notifier):
        updates = []
        poller = OrderStatusPoller(fusion_api, notifier=notifier, interval=SLOW)
        handle = poller.start(make_record(), on_update=updates.append)

        await poller.apply_status(handle, OrderStatus.FILLED)
        await poller.apply_status(handle, OrderStatus.DST_DEPLOYED)
        await poller.apply_status(handle, OrderStatus.EXPIRED)

        assert handle.stopped
        assert handle.record.status == OrderStatus.FILLED
        assert handle.record.progress == 100
        assert len(updates) == 1
        assert len(notifier.history) == 1
        await wait_for(handle)

    @pytest.mark.asyncio
    async def test_expired_notifies_warning(self, fusion_api, notifier):
        fusion_api.queue("status", {"status": "pending"}, {"status": "expired"})
        poller = OrderStatusPoller(fusion_api, notifier=notifier, interval=FAST)

        handle = poller.start(make_record())
        await wait_for(handle)

        assert handle.record.status == OrderStatus.EXPIRED
        assert handle.record.progress == 0
        warnings = [n for n in notifier.history if n.level == NotificationLevel.WARNING]
        assert [n.message for n in warnings] == ["Cross-chain order expired. You can try again."]

    @pytest.mark.asyncio
    async def test_cancelled_notifies_info(self, fusion_api, notifier):
        fusion_api.queue("status", {"status": "cancelled"})
        poller = OrderStatusPoller(fusion_api, notifier=notifier, interval=FAST)

        handle = poller.start(make_record())
        await wait_for(handle)

        assert notifier.current.level == NotificationLevel.INFO
        assert notifier.current.message == "Cross-chain order was cancelled."

    @pytest.mark.asyncio
    async def test_transient_error_keeps_polling(self, fusion_api, notifier):
        fusion_api.queue(
            "status",
            FusionApiError("Rate limit exceeded", status_code=429),
            {"unexpected": True},
            {"status": "filled"},
        )
        updates = []
        poller = OrderStatusPoller(fusion_api, notifier=notifier, interval=FAST)

        handle = poller.start(make_record(), on_update=updates.append)
        await wait_for(handle)

        assert fusion_api.count("status") == 3
        assert [r.status for r in updates] == [OrderStatus.FILLED]
        # Only the terminal outcome reaches the user
        assert len(notifier.history) == 1

    @pytest.mark.asyncio
    async def test_starting_new_session_stops_previous(self, fusion_api):
        poller = OrderStatusPoller(fusion_api, interval=SLOW)

        first = poller.start(make_record())
        second = poller.start(make_record("0x" + "ef" * 32))

        assert first.stopped
        assert not second.stopped
        assert poller.active is second
        await wait_for(first)

        poller.stop()
        assert second.stopped
        assert poller.active is None
        await wait_for(second)

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, fusion_api):
        poller = OrderStatusPoller(fusion_api, interval=SLOW)
        handle = poller.start(make_record())

        handle.stop()
        handle.stop()
        poller.stop()

        await wait_for(handle)
        assert fusion_api.count("status") == 0

    @pytest.mark.asyncio
    async def test_result_after_stop_is_discarded(self, fusion_api):
        requested = asyncio.Event()
        release = asyncio.Event()

        async def slow_status():
            requested.set()
            await release.wait()
            return {"status": "filled"}

        fusion_api.queue("status", slow_status)
        updates = []
        poller = OrderStatusPoller(fusion_api, interval=FAST)
        handle = poller.start(make_record(), on_update=updates.append)

        await asyncio.wait_for(requested.wait(), 2.0)
        handle.stop()
        release.set()
        await wait_for(handle)

        assert updates == []
        assert handle.record.status == OrderStatus.CREATED

    @pytest.mark.asyncio
    async def test_stop_during_save_skips_callbacks(self, fusion_api, notifier, order_store):
        fusion_api.queue("status", {"status": "executed"})
        store = BlockingStore(order_store)
        updates = []
        terminal = []
        poller = OrderStatusPoller(fusion_api, store, notifier, interval=FAST)
        handle = poller.start(make_record(), on_update=updates.append, on_terminal=terminal.append)

        await asyncio.wait_for(store.blocked.wait(), 2.0)
        poller.stop()
        store.release.set()
        await wait_for(handle)

        assert updates == []
        assert terminal == []
        assert notifier.history == []
        stored = await order_store.get(ORDER_HASH)
        assert stored.status == OrderStatus.FILLED

    @pytest.mark.asyncio
    async def test_record_without_hash_rejected(self, fusion_api):
        poller = OrderStatusPoller(fusion_api, interval=SLOW)

        with pytest.raises(ValueError):
            poller.start(make_record(order_hash=None))
