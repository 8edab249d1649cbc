"""
app/repositories/import_record_repository.py

Upsert helpers for imported entity rows and lookups of the orders they reference.
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import func, select
from sqlalchemy.orm import Session


class ImportRecordRepository:
    """
    Generic tenant-scoped lookup/insert/update for import target models.

    Models must carry `tenant_id` and `import_fingerprint` columns.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_attribute(
        self,
        model: type,
        *,
        tenant_id: int,
        attribute: str,
        value: Any,
    ) -> Any | None:
        column = getattr(model, attribute)
        stmt = (
            select(model)
            .where(model.tenant_id == tenant_id, column == value)
            .order_by(model.id.asc())
            .limit(1)
        )
        return self._session.execute(stmt).scalars().first()

    def find_by_fingerprint(self, model: type, *, tenant_id: int, fingerprint: str) -> Any | None:
        return self.find_by_attribute(
            model,
            tenant_id=tenant_id,
            attribute="import_fingerprint",
            value=fingerprint,
        )

    def insert(self, model: type, *, tenant_id: int, values: Mapping[str, Any]) -> Any:
        instance = model(tenant_id=tenant_id, **values)
        self._session.add(instance)
        self._session.flush()
        return instance

    def update(self, instance: Any, *, values: Mapping[str, Any]) -> Any:
        for attribute, value in values.items():
            setattr(instance, attribute, value)
        self._session.flush()
        return instance

    def count(self, model: type, *, tenant_id: int) -> int:
        stmt = select(func.count()).select_from(model).where(model.tenant_id == tenant_id)
        return int(self._session.execute(stmt).scalar_one())

    def savepoint(self) -> Any:
        """
        Context manager scoping one row's writes; rolls back on error.
        """

        if self._session.in_transaction():
            return self._session.begin_nested()
        return self._session.begin()
