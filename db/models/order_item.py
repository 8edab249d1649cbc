"""
db/models/order_item.py

Line items belonging to an order. Item exports reference their parent by
order number, which the importer resolves to order_id; there is no natural
key, so re-imports deduplicate on import_fingerprint.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ImportTrackedMixin, TenantScopedMixin, TimestampMixin


class OrderItem(Base, TenantScopedMixin, ImportTrackedMixin, TimestampMixin):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    servings: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    labour: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    hours: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    overhead: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    recipes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cost_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    sell_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("1.00"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "import_fingerprint", name="uq_order_items_tenant_fingerprint"),
        Index("ix_order_items_tenant_id", "tenant_id"),
        Index("ix_order_items_order_id", "order_id"),
    )
