from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "0002_delivery_companies"
down_revision = "0001_create_schema"
branch_labels = None
depends_on = None


def _has_index(inspector, table_name: str, index_name: str) -> bool:
    return any(idx["name"] == index_name for idx in inspector.get_indexes(table_name))


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)

    if "delivery_companies" not in set(inspector.get_table_names()):
        op.create_table(
            "delivery_companies",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("tax_id", sa.String(length=50), nullable=False),
            sa.Column("address", sa.String(length=500), nullable=True),
            sa.Column("phone", sa.String(length=30), nullable=True),
            sa.Column("email", sa.String(length=200), nullable=True),
            sa.Column("contact_person", sa.String(length=200), nullable=True),
            sa.Column("sub_domain", sa.String(length=100), nullable=False),
            sa.Column("local_id", sa.String(length=64), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("tax_id", "sub_domain", name="uq_delivery_companies_tax_id_sub_domain"),
        )
        inspector = inspect(bind)

    for name, columns in (
        ("ix_delivery_companies_name", ["name"]),
        ("ix_delivery_companies_sub_domain", ["sub_domain"]),
        ("ix_delivery_companies_local_id", ["local_id"]),
    ):
        if not _has_index(inspector, "delivery_companies", name):
            op.create_index(name, "delivery_companies", columns)


def downgrade() -> None:
    op.drop_table("delivery_companies")
