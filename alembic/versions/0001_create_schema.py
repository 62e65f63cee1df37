from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect
from sqlalchemy.dialects import postgresql


revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def _json_type(bind):
    if bind.dialect.name == "sqlite":
        return sa.JSON()
    return postgresql.JSONB(astext_type=sa.Text())


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    json_type = _json_type(bind)
    tables = set(inspector.get_table_names())

    if "users" not in tables:
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=64), primary_key=True),
            sa.Column("uid", sa.String(length=64), nullable=True),
            sa.Column("phone", sa.String(length=20), nullable=True),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="customer"),
            sa.Column("name", sa.String(length=120), nullable=True),
            sa.Column("full_name", sa.String(length=120), nullable=True),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("about", sa.Text(), nullable=True),
            sa.Column("rating", sa.Float(), nullable=True),
            sa.Column("reviews_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("years_exp", sa.Integer(), nullable=True),
            sa.Column("shop_photo_url", sa.String(length=500), nullable=True),
            sa.Column("banner_url", sa.String(length=500), nullable=True),
            sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("is_currently_chatting", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("current_orders", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("heavy_tasks", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("light_tasks", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("distance_km", sa.Float(), nullable=False, server_default="0"),
            sa.Column("pricing", json_type, nullable=True),
            sa.Column("price_from", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("skills", json_type, nullable=True),
            sa.Column("hours", json_type, nullable=True),
            sa.Column("kyc", json_type, nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index("ix_users_uid", "users", ["uid"], unique=False)
        op.create_index("ix_users_phone", "users", ["phone"], unique=False)

    if "enquiries" not in tables:
        op.create_table(
            "enquiries",
            sa.Column("id", sa.String(length=160), primary_key=True),
            sa.Column("customer_id", sa.String(length=64), nullable=False),
            sa.Column("customer_name", sa.String(length=120), nullable=False, server_default=""),
            sa.Column("tailor_id", sa.String(length=64), nullable=False),
            sa.Column("tailor_name", sa.String(length=120), nullable=False, server_default=""),
            sa.Column("status", sa.String(length=20), nullable=True),
            sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_enquiries_customer_id", "enquiries", ["customer_id"], unique=False)
        op.create_index("ix_enquiries_tailor_id", "enquiries", ["tailor_id"], unique=False)
        op.create_index("ix_enquiries_tailor_last_updated", "enquiries", ["tailor_id", "last_updated"], unique=False)
        op.create_index("ix_enquiries_customer_last_updated", "enquiries", ["customer_id", "last_updated"], unique=False)

    if "enquiry_messages" not in tables:
        op.create_table(
            "enquiry_messages",
            sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("enquiry_id", sa.String(length=160), sa.ForeignKey("enquiries.id"), nullable=False),
            sa.Column("client_id", sa.BigInteger(), nullable=False),
            sa.Column("sender", sa.String(length=20), nullable=False),
            sa.Column("type", sa.String(length=20), nullable=False, server_default="plain"),
            sa.Column("text", sa.Text(), nullable=False, server_default=""),
            sa.Column("pricing_service", sa.String(length=160), nullable=True),
            sa.Column("pricing_price", sa.Numeric(10, 2), nullable=True),
            sa.Column("reason", sa.Text(), nullable=True),
            sa.Column("order_id", sa.String(length=64), nullable=True),
            sa.Column("audio_url", sa.String(length=500), nullable=True),
            sa.Column("duration_seconds", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("ix_enquiry_messages_enquiry_id", "enquiry_messages", ["enquiry_id"], unique=False)

    if "orders" not in tables:
        op.create_table(
            "orders",
            sa.Column("id", sa.String(length=64), primary_key=True),
            sa.Column("enquiry_id", sa.String(length=160), sa.ForeignKey("enquiries.id"), nullable=True),
            sa.Column("customer_id", sa.String(length=64), nullable=False),
            sa.Column("customer_name", sa.String(length=120), nullable=False, server_default=""),
            sa.Column("tailor_id", sa.String(length=64), nullable=False),
            sa.Column("tailor_name", sa.String(length=120), nullable=False, server_default=""),
            sa.Column("service", sa.String(length=160), nullable=False, server_default="Tailoring Service"),
            sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("status", sa.String(length=40), nullable=False, server_default="working"),
            sa.Column("work_type", sa.String(length=10), nullable=False, server_default="light"),
            sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("last_update", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("ix_orders_enquiry_id", "orders", ["enquiry_id"], unique=False)
        op.create_index("ix_orders_customer_id", "orders", ["customer_id"], unique=False)
        op.create_index("ix_orders_tailor_id", "orders", ["tailor_id"], unique=False)
        op.create_index("ix_orders_tailor_created", "orders", ["tailor_id", "created_at"], unique=False)
        op.create_index("ix_orders_customer_created", "orders", ["customer_id", "created_at"], unique=False)

    if "cart_items" not in tables:
        op.create_table(
            "cart_items",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.String(length=64), nullable=False),
            sa.Column("tailor_id", sa.String(length=64), nullable=False),
            sa.Column("tailor_name", sa.String(length=120), nullable=False, server_default=""),
            sa.Column("tailor_image", sa.String(length=500), nullable=True),
            sa.Column("price_from", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("distance_km", sa.Float(), nullable=False, server_default="0"),
            sa.Column("rating", sa.Float(), nullable=True),
            sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint("user_id", "tailor_id", name="uq_cart_items_user_tailor"),
        )
        op.create_index("ix_cart_items_user_id", "cart_items", ["user_id"], unique=False)

    if "otp_challenges" not in tables:
        op.create_table(
            "otp_challenges",
            sa.Column("id", sa.String(length=32), primary_key=True),
            sa.Column("phone", sa.String(length=20), nullable=False),
            sa.Column("code_hash", sa.String(length=100), nullable=False),
            sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_otp_challenges_phone", "otp_challenges", ["phone"], unique=False)

    if "sms_message_log" not in tables:
        op.create_table(
            "sms_message_log",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("purpose", sa.String(length=40), nullable=False),
            sa.Column("to_phone", sa.String(length=20), nullable=True),
            sa.Column("reference_id", sa.String(length=160), nullable=True),
            sa.Column("message", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("error", sa.Text(), nullable=True),
            sa.Column("provider_response", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index(
            "ix_sms_message_log_purpose_created",
            "sms_message_log",
            ["purpose", "created_at"],
            unique=False,
        )


def downgrade() -> None:
    for table in (
        "sms_message_log",
        "otp_challenges",
        "cart_items",
        "orders",
        "enquiry_messages",
        "enquiries",
        "users",
    ):
        op.drop_table(table)
