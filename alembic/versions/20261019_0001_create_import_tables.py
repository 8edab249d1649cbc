"""create contacts, quotes, orders, expenses and mapping_configs tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("business_name", sa.String(length=255), nullable=True),
        sa.Column("contact_type", sa.String(length=32), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("import_fingerprint", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "import_fingerprint", name="uq_contacts_tenant_fingerprint"),
    )
    op.create_index("ix_contacts_tenant_id", "contacts", ["tenant_id"], unique=False)
    op.create_index("ix_contacts_tenant_email", "contacts", ["tenant_id", "email"], unique=False)
    op.create_index("ix_contacts_tenant_first_name", "contacts", ["tenant_id", "first_name"], unique=False)

    op.create_table(
        "quotes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("quote_number", sa.String(length=64), nullable=False),
        sa.Column("contact_id", sa.Integer(), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("import_fingerprint", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "quote_number", name="uq_quotes_tenant_quote_number"),
    )
    op.create_index("ix_quotes_tenant_id", "quotes", ["tenant_id"], unique=False)
    op.create_index("ix_quotes_contact_id", "quotes", ["contact_id"], unique=False)
    op.create_index("ix_quotes_tenant_event_date", "quotes", ["tenant_id", "event_date"], unique=False)

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("order_number", sa.String(length=64), nullable=False),
        sa.Column("contact_id", sa.Integer(), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("theme", sa.Text(), nullable=True),
        sa.Column("delivery_type", sa.String(length=32), nullable=False),
        sa.Column("delivery_address", sa.Text(), nullable=True),
        sa.Column("delivery_cost", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("amount_outstanding", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit_paid", sa.Boolean(), nullable=False),
        sa.Column("balance_paid", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("import_fingerprint", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "order_number", name="uq_orders_tenant_order_number"),
    )
    op.create_index("ix_orders_tenant_id", "orders", ["tenant_id"], unique=False)
    op.create_index("ix_orders_contact_id", "orders", ["contact_id"], unique=False)
    op.create_index("ix_orders_tenant_event_date", "orders", ["tenant_id", "event_date"], unique=False)

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("reference", sa.String(length=64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=120), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("supplier", sa.String(length=255), nullable=True),
        sa.Column("payment_source", sa.String(length=120), nullable=True),
        sa.Column("vat", sa.Numeric(10, 2), nullable=False),
        sa.Column("tax_deductible", sa.Boolean(), nullable=False),
        sa.Column("import_fingerprint", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "import_fingerprint", name="uq_expenses_tenant_fingerprint"),
        sa.UniqueConstraint("tenant_id", "reference", name="uq_expenses_tenant_reference"),
    )
    op.create_index("ix_expenses_tenant_id", "expenses", ["tenant_id"], unique=False)
    op.create_index("ix_expenses_tenant_date", "expenses", ["tenant_id", "date"], unique=False)

    op.create_table(
        "mapping_configs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("field_mapping_json", sa.JSON(), nullable=False),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "tenant_id",
            "entity_type",
            "name",
            name="uq_mapping_configs_tenant_entity_name",
        ),
    )
    op.create_index(
        "ix_mapping_configs_tenant_entity_active",
        "mapping_configs",
        ["tenant_id", "entity_type", "is_active"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_mapping_configs_tenant_entity_active", table_name="mapping_configs")
    op.drop_table("mapping_configs")

    op.drop_index("ix_expenses_tenant_date", table_name="expenses")
    op.drop_index("ix_expenses_tenant_id", table_name="expenses")
    op.drop_table("expenses")

    op.drop_index("ix_orders_tenant_event_date", table_name="orders")
    op.drop_index("ix_orders_contact_id", table_name="orders")
    op.drop_index("ix_orders_tenant_id", table_name="orders")
    op.drop_table("orders")

    op.drop_index("ix_quotes_tenant_event_date", table_name="quotes")
    op.drop_index("ix_quotes_contact_id", table_name="quotes")
    op.drop_index("ix_quotes_tenant_id", table_name="quotes")
    op.drop_table("quotes")

    op.drop_index("ix_contacts_tenant_first_name", table_name="contacts")
    op.drop_index("ix_contacts_tenant_email", table_name="contacts")
    op.drop_index("ix_contacts_tenant_id", table_name="contacts")
    op.drop_table("contacts")
