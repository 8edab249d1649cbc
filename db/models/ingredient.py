"""
db/models/ingredient.py

Ingredient price list. The ingredient name is the natural key per tenant.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ImportTrackedMixin, TenantScopedMixin, TimestampMixin


class Ingredient(Base, TenantScopedMixin, ImportTrackedMixin, TimestampMixin):
    __tablename__ = "ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    pack_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    category: Mapped[str] = mapped_column(String(120), nullable=False, default="General")
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_ingredients_tenant_name"),
        Index("ix_ingredients_tenant_id", "tenant_id"),
    )
