"""
db/models/mapping_config.py

Saved column mappings per tenant and entity type. A saved mapping is applied
before fuzzy header matching so a bakery only fixes an awkward export once.
"""

from __future__ import annotations

import uuid

from sqlalchemy import JSON, Boolean, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TenantScopedMixin, TimestampMixin


class MappingConfig(Base, TenantScopedMixin, TimestampMixin):
    __tablename__ = "mapping_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        comment="Human-readable config name",
    )
    entity_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="quote, order, expense, contact",
    )
    field_mapping_json: Mapped[dict[str, str | None]] = mapped_column(
        JSON,
        nullable=False,
        comment="Canonical field -> source column (null means unmapped)",
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "entity_type",
            "name",
            name="uq_mapping_configs_tenant_entity_name",
        ),
        Index("ix_mapping_configs_tenant_entity_active", "tenant_id", "entity_type", "is_active"),
    )
