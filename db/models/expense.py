"""
db/models/expense.py

Business expenses. Expense exports carry no natural key, so re-imports are
deduplicated on import_fingerprint and each row gets a synthetic reference.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ImportTrackedMixin, TenantScopedMixin, TimestampMixin


class Expense(Base, TenantScopedMixin, ImportTrackedMixin, TimestampMixin):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reference: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Synthetic EXP-<epoch-ms>-<suffix> reference",
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(120), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, comment="Amount including VAT")
    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_source: Mapped[str | None] = mapped_column(String(120), nullable=True)
    vat: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    tax_deductible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "import_fingerprint", name="uq_expenses_tenant_fingerprint"),
        UniqueConstraint("tenant_id", "reference", name="uq_expenses_tenant_reference"),
        Index("ix_expenses_tenant_id", "tenant_id"),
        Index("ix_expenses_tenant_date", "tenant_id", "date"),
    )
