"""Repository for cross-chain order records."""

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from crossswap.fusion.models import OrderRecord
from crossswap.ledger.models import CrossChainOrder


class OrderRepository:
    """Session-scoped order record operations. Callers own the commit."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_row(self, key: str) -> Optional[CrossChainOrder]:
        stmt = select(CrossChainOrder).where(
            or_(CrossChainOrder.order_hash == key, CrossChainOrder.id == key)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, record: OrderRecord) -> OrderRecord:
        """Insert or replace the whole record.

        A stored record with the same order hash but another id is replaced.
        """
        if record.order_hash:
            existing = await self._get_row(record.order_hash)
            if existing is not None and existing.id != record.id:
                await self.session.delete(existing)
                await self.session.flush()
        await self.session.merge(CrossChainOrder.from_record(record))
        await self.session.flush()
        return record

    async def get(self, key: str) -> Optional[OrderRecord]:
        """Get a record by order hash, or by record id before a hash exists."""
        row = await self._get_row(key)
        return row.to_record() if row else None

    async def delete(self, key: str) -> bool:
        row = await self._get_row(key)
        if row is None:
            return False
        await self.session.delete(row)
        await self.session.flush()
        return True

    async def list_orders(
        self,
        maker: Optional[str] = None,
        chain_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[OrderRecord]:
        """List records, newest first.

        ``chain_id`` matches either the source or the destination chain.
        """
        stmt = select(CrossChainOrder)
        if maker:
            stmt = stmt.where(CrossChainOrder.maker == maker)
        if chain_id is not None:
            stmt = stmt.where(
                or_(CrossChainOrder.src_chain == chain_id, CrossChainOrder.dst_chain == chain_id)
            )
        stmt = stmt.order_by(CrossChainOrder.created_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return [row.to_record() for row in result.scalars().all()]
