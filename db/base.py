"""
db/base.py

Declarative base and shared mixins for all SQLAlchemy models.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Project-wide declarative base.
    All models must inherit from this class.
    """

    type_annotation_map: dict[type, Any] = {}


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at to any model.
    updated_at is automatically refreshed on every UPDATE via onupdate.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class TenantScopedMixin:
    """
    Mixin for rows owned by one tenant (the bakery account that imported them).
    Every lookup and write must filter on tenant_id.
    """

    tenant_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Owning tenant/user id",
    )


class ImportTrackedMixin:
    """
    Mixin for rows that can be created by the CSV import pipeline.

    import_fingerprint holds a SHA-256 digest of the canonical row content and
    is used as the upsert key for entities without a natural key.
    """

    import_fingerprint: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Content hash used for idempotent re-import",
    )
