"""Tests for the order ledger."""

import pytest

from conftest import DST_CHAIN, DST_TOKEN, ORDER_HASH, SRC_CHAIN, SRC_TOKEN, WALLET
from crossswap.fusion.models import OrderRecord, OrderStatus
from crossswap.ledger.database import resolve_database_url
from crossswap.ledger.repository import OrderRepository

OTHER_MAKER = "0x00000000000000000000000000000000000000aA"


def make_record(
    order_hash=ORDER_HASH, maker=WALLET, src_chain=SRC_CHAIN, dst_chain=DST_CHAIN, created_at=1000.0
):
    return OrderRecord(
        quote_id="quote-1",
        src_chain=src_chain,
        dst_chain=dst_chain,
        maker=maker,
        src_token=SRC_TOKEN,
        dst_token=DST_TOKEN,
        src_amount="1000000",
        dst_amount="999000",
        order_hash=order_hash,
        created_at=created_at,
        updated_at=created_at,
    )


class TestOrderStore:
    """Tests for OrderStore."""

    @pytest.mark.asyncio
    async def test_save_and_get_by_hash(self, order_store):
        record = make_record()
        await order_store.save(record)

        loaded = await order_store.get(ORDER_HASH)

        assert loaded == record

    @pytest.mark.asyncio
    async def test_get_by_id_before_hash(self, order_store):
        record = make_record(order_hash=None)
        await order_store.save(record)

        loaded = await order_store.get(record.id)

        assert loaded.id == record.id
        assert loaded.order_hash is None
        assert record.key == record.id

    @pytest.mark.asyncio
    async def test_get_missing(self, order_store):
        assert await order_store.get(ORDER_HASH) is None

    @pytest.mark.asyncio
    async def test_save_replaces_whole_record(self, order_store):
        record = make_record()
        await order_store.save(record)

        advanced = record.advance(OrderStatus.SRC_DEPLOYED)
        await order_store.save(advanced)

        loaded = await order_store.get(ORDER_HASH)
        assert loaded.status == OrderStatus.SRC_DEPLOYED
        assert loaded.progress == 40
        assert len(await order_store.list_orders()) == 1

    @pytest.mark.asyncio
    async def test_same_hash_new_record_replaces(self, order_store):
        first = make_record()
        second = make_record(created_at=2000.0)
        await order_store.save(first)
        await order_store.save(second)

        orders = await order_store.list_orders()

        assert len(orders) == 1
        assert orders[0].id == second.id

    @pytest.mark.asyncio
    async def test_delete(self, order_store):
        await order_store.save(make_record())

        assert await order_store.delete(ORDER_HASH) is True
        assert await order_store.get(ORDER_HASH) is None
        assert await order_store.delete(ORDER_HASH) is False

    @pytest.mark.asyncio
    async def test_list_newest_first(self, order_store):
        await order_store.save(make_record("0x" + "01" * 32, created_at=1000.0))
        await order_store.save(make_record("0x" + "02" * 32, created_at=3000.0))
        await order_store.save(make_record("0x" + "03" * 32, created_at=2000.0))

        orders = await order_store.list_orders()

        assert [o.order_hash[:4] for o in orders] == ["0x02", "0x03", "0x01"]

    @pytest.mark.asyncio
    async def test_list_by_maker_normalizes_address(self, order_store):
        await order_store.save(make_record("0x" + "01" * 32))
        await order_store.save(make_record("0x" + "02" * 32, maker=OTHER_MAKER))

        orders = await order_store.list_orders(maker=WALLET.lower())

        assert len(orders) == 1
        assert orders[0].maker == WALLET

    @pytest.mark.asyncio
    async def test_list_by_maker_rejects_bad_address(self, order_store):
        with pytest.raises(ValueError):
            await order_store.list_orders(maker="not-an-address")

    @pytest.mark.asyncio
    async def test_list_by_chain_matches_either_side(self, order_store):
        await order_store.save(make_record("0x" + "01" * 32, src_chain=1, dst_chain=42161))
        await order_store.save(make_record("0x" + "02" * 32, src_chain=42161, dst_chain=10))
        await order_store.save(make_record("0x" + "03" * 32, src_chain=56, dst_chain=137))

        orders = await order_store.list_orders(chain_id=42161)

        assert {o.order_hash[:4] for o in orders} == {"0x01", "0x02"}

    @pytest.mark.asyncio
    async def test_list_limit(self, order_store):
        for i in range(5):
            await order_store.save(make_record("0x" + f"{i:02x}" * 32, created_at=1000.0 + i))

        assert len(await order_store.list_orders(limit=2)) == 2


class TestOrderRepository:
    """Tests for OrderRepository within a single session."""

    @pytest.mark.asyncio
    async def test_offset(self, db_session):
        repo = OrderRepository(db_session)
        for i in range(3):
            await repo.save(make_record("0x" + f"{i:02x}" * 32, created_at=1000.0 + i))
        await db_session.commit()

        page = await repo.list_orders(limit=2, offset=1)

        assert [o.created_at for o in page] == [1001.0, 1000.0]


class TestDatabaseUrl:
    @pytest.mark.parametrize(
        "configured",
        ["sqlite:///./data/crossswap.db", "sqlite+aiosqlite:///./data/crossswap.db"],
    )
    def test_sqlite_uses_async_driver(self, configured):
        url = resolve_database_url(configured)

        assert url.drivername == "sqlite+aiosqlite"
        assert url.database == "./data/crossswap.db"

    def test_other_backends_untouched(self):
        url = resolve_database_url("postgresql+asyncpg://user:pw@db/crossswap")

        assert url.drivername == "postgresql+asyncpg"
