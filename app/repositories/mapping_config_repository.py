"""
app/repositories/mapping_config_repository.py

Persistence helpers for saved column mappings.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.mapping_config import MappingConfig


class MappingConfigRepository:
    """
    Repository for saved per-tenant, per-entity column mappings.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_active(
        self,
        *,
        tenant_id: int,
        entity_type: str,
        name: str | None = None,
    ) -> MappingConfig | None:
        """
        Resolve the most recently updated active mapping, optionally by name.
        """

        stmt = select(MappingConfig).where(
            MappingConfig.is_active.is_(True),
            MappingConfig.tenant_id == tenant_id,
            MappingConfig.entity_type == entity_type,
        )
        if name:
            stmt = stmt.where(MappingConfig.name == name.strip())
        stmt = stmt.order_by(MappingConfig.updated_at.desc(), MappingConfig.created_at.desc())
        return self._session.execute(stmt).scalars().first()

    def save(
        self,
        *,
        tenant_id: int,
        entity_type: str,
        name: str,
        field_mapping: dict[str, str | None],
        notes: str | None = None,
        is_active: bool = True,
    ) -> MappingConfig:
        """
        Insert or update a mapping keyed by (tenant_id, entity_type, name).
        """

        normalized_name = name.strip()
        stmt = select(MappingConfig).where(
            MappingConfig.tenant_id == tenant_id,
            MappingConfig.entity_type == entity_type,
            MappingConfig.name == normalized_name,
        )
        existing = self._session.execute(stmt).scalars().first()

        if existing is None:
            existing = MappingConfig(
                tenant_id=tenant_id,
                entity_type=entity_type,
                name=normalized_name,
                field_mapping_json=field_mapping,
                notes=notes,
                is_active=is_active,
            )
            self._session.add(existing)
        else:
            existing.field_mapping_json = field_mapping
            existing.notes = notes
            existing.is_active = is_active

        self._session.flush()
        return existing
