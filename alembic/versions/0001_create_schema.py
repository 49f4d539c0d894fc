from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import JSONB


revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None

JSON_TYPE = JSONB().with_variant(sa.JSON(), "sqlite")


def _has_index(inspector, table_name: str, index_name: str) -> bool:
    return any(idx["name"] == index_name for idx in inspector.get_indexes(table_name))


def _create_index(bind, name: str, table_name: str, columns: list[str], unique: bool = False) -> None:
    inspector = inspect(bind)
    if not _has_index(inspector, table_name, name):
        op.create_index(name, table_name, columns, unique=unique)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    tables = set(inspect(bind).get_table_names())

    if "businesses" not in tables:
        op.create_table(
            "businesses",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("sub_domain", sa.String(length=100), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
            sa.Column("waba_id", sa.String(length=64), nullable=True),
            sa.Column("whatsapp_access_token", sa.Text(), nullable=True),
            sa.Column("whatsapp_token_expires_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("whatsapp_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )
    _create_index(bind, "ix_businesses_sub_domain", "businesses", ["sub_domain"], unique=True)
    _create_index(bind, "ix_businesses_waba_id", "businesses", ["waba_id"])

    if "business_phone_numbers" not in tables:
        op.create_table(
            "business_phone_numbers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
            sa.Column("phone_number_id", sa.String(length=64), nullable=False),
        )
    _create_index(bind, "ix_business_phone_numbers_business_id", "business_phone_numbers", ["business_id"])
    _create_index(bind, "ix_business_phone_numbers_phone_number_id", "business_phone_numbers", ["phone_number_id"])
    _create_index(
        bind,
        "ix_business_phone_numbers_lookup",
        "business_phone_numbers",
        ["phone_number_id", "business_id"],
    )

    if "business_locations" not in tables:
        op.create_table(
            "business_locations",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
            sa.Column("sub_domain", sa.String(length=100), nullable=False),
            sa.Column("local_id", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.UniqueConstraint("sub_domain", "local_id", name="uq_business_locations_sub_domain_local"),
        )
    _create_index(bind, "ix_business_locations_business_id", "business_locations", ["business_id"])
    _create_index(bind, "ix_business_locations_sub_domain", "business_locations", ["sub_domain"])

    if "delivery_zones" not in tables:
        op.create_table(
            "delivery_zones",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("zone_name", sa.String(length=200), nullable=False),
            sa.Column("delivery_cost", sa.Float(), nullable=False),
            sa.Column("minimum_order", sa.Float(), nullable=False),
            sa.Column("estimated_time", sa.Integer(), nullable=False),
            sa.Column("allows_free_delivery", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("minimum_for_free_delivery", sa.Float(), nullable=True),
            sa.Column("zone_type", sa.String(length=20), nullable=False, server_default="simple"),
            sa.Column("coordinates", JSON_TYPE, nullable=False),
            sa.Column("radius_km", sa.Float(), nullable=True),
            sa.Column("sub_domain", sa.String(length=100), nullable=False),
            sa.Column("local_id", sa.String(length=64), nullable=False),
            sa.Column("status", sa.String(length=1), nullable=False, server_default="1"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )
    _create_index(bind, "ix_delivery_zones_sub_domain", "delivery_zones", ["sub_domain"])
    _create_index(bind, "ix_delivery_zones_local_id", "delivery_zones", ["local_id"])
    _create_index(bind, "ix_delivery_zones_scope", "delivery_zones", ["sub_domain", "local_id", "is_active"])

    if "drivers" not in tables:
        op.create_table(
            "drivers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("first_name", sa.String(length=100), nullable=False),
            sa.Column("last_name", sa.String(length=100), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("phone", sa.String(length=30), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("vehicle_type", sa.String(length=20), nullable=False, server_default="motorcycle"),
            sa.Column("license_plate", sa.String(length=20), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
            sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("current_latitude", sa.Float(), nullable=True),
            sa.Column("current_longitude", sa.Float(), nullable=True),
            sa.Column("location_updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("current_orders", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_deliveries", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("successful_deliveries", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("rating_average", sa.Float(), nullable=False, server_default="0"),
            sa.Column("sub_domain", sa.String(length=100), nullable=False),
            sa.Column("local_id", sa.String(length=64), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
            sa.UniqueConstraint("email", "sub_domain", name="uq_drivers_email_sub_domain"),
        )
    _create_index(bind, "ix_drivers_phone", "drivers", ["phone"])
    _create_index(bind, "ix_drivers_sub_domain", "drivers", ["sub_domain"])
    _create_index(bind, "ix_drivers_local_id", "drivers", ["local_id"])
    _create_index(bind, "ix_drivers_availability", "drivers", ["sub_domain", "status", "available", "is_active"])

    if "whatsapp_customers" not in tables:
        op.create_table(
            "whatsapp_customers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("phone", sa.String(length=30), nullable=False),
            sa.Column("sub_domain", sa.String(length=100), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=True),
            sa.Column("last_interaction", sa.DateTime(timezone=True), nullable=True),
            sa.Column("interaction_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("phone", "sub_domain", name="uq_whatsapp_customers_phone_sub_domain"),
        )
    _create_index(bind, "ix_whatsapp_customers_phone", "whatsapp_customers", ["phone"])
    _create_index(bind, "ix_whatsapp_customers_sub_domain", "whatsapp_customers", ["sub_domain"])

    if "whatsapp_chats" not in tables:
        op.create_table(
            "whatsapp_chats",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("customer_phone", sa.String(length=30), nullable=False),
            sa.Column("sub_domain", sa.String(length=100), nullable=False),
            sa.Column("customer_name", sa.String(length=200), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("message_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("last_message", sa.String(length=1000), nullable=True),
            sa.Column("last_message_time", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("customer_phone", "sub_domain", name="uq_whatsapp_chats_phone_sub_domain"),
        )
    _create_index(bind, "ix_whatsapp_chats_sub_domain", "whatsapp_chats", ["sub_domain"])
    _create_index(
        bind,
        "ix_whatsapp_chats_sub_domain_last_message",
        "whatsapp_chats",
        ["sub_domain", "last_message_time"],
    )

    if "chat_messages" not in tables:
        op.create_table(
            "chat_messages",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("chat_id", sa.Integer(), sa.ForeignKey("whatsapp_chats.id"), nullable=False),
            sa.Column("sub_domain", sa.String(length=100), nullable=False),
            sa.Column("message_type", sa.String(length=20), nullable=False, server_default="text"),
            sa.Column("direction", sa.String(length=10), nullable=False),
            sa.Column("content", JSON_TYPE, nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("wa_message_id", sa.String(length=128), nullable=True),
            sa.Column("raw_payload", JSON_TYPE, nullable=True),
            sa.Column("provider_status", sa.String(length=30), nullable=True),
            sa.Column("status_recipient_id", sa.String(length=30), nullable=True),
            sa.Column("status_updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("error", sa.Text(), nullable=True),
            sa.UniqueConstraint("sub_domain", "wa_message_id", "direction", name="uq_chat_messages_wa_message"),
        )
    _create_index(bind, "ix_chat_messages_chat_id", "chat_messages", ["chat_id"])
    _create_index(bind, "ix_chat_messages_sub_domain", "chat_messages", ["sub_domain"])
    _create_index(bind, "ix_chat_messages_chat_timestamp", "chat_messages", ["chat_id", "timestamp"])
    _create_index(bind, "ix_chat_messages_wa_message_id", "chat_messages", ["wa_message_id"])

    if "whatsapp_template_statuses" not in tables:
        op.create_table(
            "whatsapp_template_statuses",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("sub_domain", sa.String(length=100), nullable=False),
            sa.Column("template_id", sa.String(length=64), nullable=False),
            sa.Column("template_name", sa.String(length=200), nullable=True),
            sa.Column("language", sa.String(length=20), nullable=True),
            sa.Column("event", sa.String(length=30), nullable=False),
            sa.Column("reason", sa.Text(), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("sub_domain", "template_id", name="uq_whatsapp_template_statuses_template"),
        )
    _create_index(bind, "ix_whatsapp_template_statuses_sub_domain", "whatsapp_template_statuses", ["sub_domain"])


def downgrade() -> None:
    for table_name in (
        "whatsapp_template_statuses",
        "chat_messages",
        "whatsapp_chats",
        "whatsapp_customers",
        "drivers",
        "delivery_zones",
        "business_locations",
        "business_phone_numbers",
        "businesses",
    ):
        op.drop_table(table_name)
