"""
db/models/contact.py

Customer and supplier contacts. Imports create minimal contacts on demand
when an order or quote names someone not yet on file.
"""

from __future__ import annotations

from sqlalchemy import Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ImportTrackedMixin, TenantScopedMixin, TimestampMixin


class ContactType:
    CUSTOMER = "Customer"
    SUPPLIER = "Supplier"


class Contact(Base, TenantScopedMixin, ImportTrackedMixin, TimestampMixin):
    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    business_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_type: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        comment="Customer, Supplier",
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "import_fingerprint", name="uq_contacts_tenant_fingerprint"),
        Index("ix_contacts_tenant_id", "tenant_id"),
        Index("ix_contacts_tenant_email", "tenant_id", "email"),
        Index("ix_contacts_tenant_first_name", "tenant_id", "first_name"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
