"""SQLAlchemy models for locally tracked cross-chain orders."""

from typing import Optional

from sqlalchemy import Float, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from crossswap.fusion.models import OrderRecord, OrderStatus


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class CrossChainOrder(Base):
    """A submitted Fusion+ order and its last known status."""

    __tablename__ = "cross_chain_orders"
    __table_args__ = (Index("ix_cross_chain_orders_chains", "src_chain", "dst_chain"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    order_hash: Mapped[Optional[str]] = mapped_column(
        String(66), unique=True, nullable=True, index=True
    )
    quote_id: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.CREATED.value)
    progress: Mapped[int] = mapped_column(Integer, default=0)

    src_chain: Mapped[int] = mapped_column(Integer, nullable=False)
    dst_chain: Mapped[int] = mapped_column(Integer, nullable=False)
    maker: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    src_token: Mapped[str] = mapped_column(String(42), nullable=False)
    dst_token: Mapped[str] = mapped_column(String(42), nullable=False)
    # Raw token units, up to uint256
    src_amount: Mapped[str] = mapped_column(String(78), nullable=False)
    dst_amount: Mapped[str] = mapped_column(String(78), nullable=False)

    created_at: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[float] = mapped_column(Float, nullable=False)

    @classmethod
    def from_record(cls, record: OrderRecord) -> "CrossChainOrder":
        data = record.to_dict()
        return cls(**data)

    def to_record(self) -> OrderRecord:
        return OrderRecord(
            quote_id=self.quote_id,
            src_chain=self.src_chain,
            dst_chain=self.dst_chain,
            maker=self.maker,
            src_token=self.src_token,
            dst_token=self.dst_token,
            src_amount=self.src_amount,
            dst_amount=self.dst_amount,
            order_hash=self.order_hash,
            status=OrderStatus(self.status),
            progress=self.progress,
            id=self.id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<CrossChainOrder {self.order_hash or self.id} {self.status}>"
