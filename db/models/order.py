"""
db/models/order.py

Confirmed customer orders. order_number is the natural key used by re-imports.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ImportTrackedMixin, TenantScopedMixin, TimestampMixin


class OrderStatus:
    QUOTE = "Quote"
    CONFIRMED = "Confirmed"
    PAID = "Paid"
    READY = "Ready"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class DeliveryType:
    PICKUP = "Pickup"
    DELIVERY = "Delivery"


class Order(Base, TenantScopedMixin, ImportTrackedMixin, TimestampMixin):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[str] = mapped_column(String(64), nullable=False)
    contact_id: Mapped[int | None] = mapped_column(
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False, default="Other")
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=OrderStatus.QUOTE,
        comment="Quote, Confirmed, Paid, Ready, Delivered, Cancelled",
    )
    theme: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivery_type: Mapped[str] = mapped_column(String(32), nullable=False, default=DeliveryType.PICKUP)
    delivery_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivery_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    amount_outstanding: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    deposit_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    balance_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "order_number", name="uq_orders_tenant_order_number"),
        Index("ix_orders_tenant_id", "tenant_id"),
        Index("ix_orders_contact_id", "contact_id"),
        Index("ix_orders_tenant_event_date", "tenant_id", "event_date"),
    )

    @property
    def amount_paid(self) -> Decimal:
        return (self.total_amount or Decimal("0")) - (self.amount_outstanding or Decimal("0"))
