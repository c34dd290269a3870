"""Order store used by the orchestrator and the status poller."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crossswap.fusion.models import OrderRecord, normalize_address
from crossswap.ledger.database import get_session_factory
from crossswap.ledger.repository import OrderRepository

logger = logging.getLogger(__name__)


class OrderStore:
    """Order records keyed by order hash, one transaction per call."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory or get_session_factory()

    async def save(self, record: OrderRecord) -> OrderRecord:
        async with self._session_factory() as session:
            await OrderRepository(session).save(record)
            await session.commit()
        logger.debug(f"Saved order {record.key} ({record.status.value}, {record.progress}%)")
        return record

    async def get(self, key: str) -> Optional[OrderRecord]:
        async with self._session_factory() as session:
            return await OrderRepository(session).get(key)

    async def delete(self, key: str) -> bool:
        async with self._session_factory() as session:
            deleted = await OrderRepository(session).delete(key)
            await session.commit()
        if deleted:
            logger.info(f"Removed order {key}")
        return deleted

    async def list_orders(
        self,
        maker: Optional[str] = None,
        chain_id: Optional[int] = None,
        limit: int = 50,
    ) -> list[OrderRecord]:
        if maker:
            maker = normalize_address(maker)
        async with self._session_factory() as session:
            return await OrderRepository(session).list_orders(maker, chain_id, limit=limit)
