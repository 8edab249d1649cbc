"""
app/repositories/contact_repository.py

Persistence helpers for contacts referenced by imported rows.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, func, or_, select
from sqlalchemy.orm import Session

from db.models.contact import Contact


class ContactRepository:
    """
    Tenant-scoped contact lookups and minimal contact creation.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_name(self, *, tenant_id: int, name: str) -> Contact | None:
        """
        Return the lowest-id tenant contact whose full name contains `name`,
        or whose first name contains the first token of `name`. Both
        comparisons are case-insensitive.
        """

        needle = " ".join(name.split()).lower()
        if not needle:
            return None
        first_token = needle.split(" ", 1)[0]

        full_name = func.lower(
            func.trim(Contact.first_name + " " + func.coalesce(Contact.last_name, "")),
            type_=String,
        )
        first_name = func.lower(Contact.first_name, type_=String)

        stmt = (
            select(Contact)
            .where(Contact.tenant_id == tenant_id)
            .where(
                or_(
                    full_name.contains(needle, autoescape=True),
                    first_name.contains(first_token, autoescape=True),
                )
            )
            .order_by(Contact.id.asc())
            .limit(1)
        )
        return self._session.execute(stmt).scalars().first()

    def create(
        self,
        *,
        tenant_id: int,
        first_name: str,
        last_name: str = "",
    ) -> Contact:
        contact = Contact(tenant_id=tenant_id, first_name=first_name, last_name=last_name)
        with self._transaction_context():
            self._session.add(contact)
            self._session.flush()
        return contact

    def get(self, *, tenant_id: int, contact_id: int) -> Contact | None:
        stmt = select(Contact).where(Contact.tenant_id == tenant_id, Contact.id == contact_id)
        return self._session.execute(stmt).scalars().first()

    def count(self, *, tenant_id: int) -> int:
        stmt = select(func.count()).select_from(Contact).where(Contact.tenant_id == tenant_id)
        return int(self._session.execute(stmt).scalar_one())

    def _transaction_context(self) -> Any:
        if self._session.in_transaction():
            return self._session.begin_nested()
        return self._session.begin()
