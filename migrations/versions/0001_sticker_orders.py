"""sticker orders, qr codes, discs

Baseline: profiles, shipping addresses, sticker orders and items, qr codes,
discs and photos, recovery events, audit and error logs.

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_sticker_orders"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_TABLES = (
    "error_logs",
    "audit_logs",
    "recovery_events",
    "disc_photos",
    "discs",
    "sticker_order_items",
    "qr_codes",
    "sticker_orders",
    "shipping_addresses",
    "profiles",
)


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("username", sa.String(), nullable=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("display_preference", sa.String(), nullable=False, server_default="username"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "shipping_addresses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False, index=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("street_address", sa.String(), nullable=False),
        sa.Column("city", sa.String(), nullable=False),
        sa.Column("state", sa.String(), nullable=False),
        sa.Column("postal_code", sa.String(), nullable=False),
        sa.Column("country", sa.String(), nullable=False, server_default="US"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "sticker_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", sa.String(), nullable=False, unique=True, index=True),
        sa.Column("user_id", sa.String(), nullable=False, index=True),
        sa.Column("shipping_address_id", sa.Integer(), sa.ForeignKey("shipping_addresses.id"), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False),
        sa.Column("total_price_cents", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, index=True),
        sa.Column("stripe_checkout_session_id", sa.String(), nullable=True, index=True),
        sa.Column("stripe_payment_intent_id", sa.String(), nullable=True),
        sa.Column("printer_token", sa.String(), nullable=False, unique=True, index=True),
        sa.Column("pdf_storage_path", sa.String(), nullable=True),
        sa.Column("tracking_number", sa.String(), nullable=True),
        sa.Column("printed_at", sa.DateTime(), nullable=True),
        sa.Column("shipped_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "qr_codes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("short_code", sa.String(length=12), nullable=False, unique=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("assigned_to", sa.String(), nullable=True, index=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "sticker_order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("sticker_orders.id"), nullable=False, index=True),
        sa.Column("qr_code_id", sa.Integer(), sa.ForeignKey("qr_codes.id"), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "discs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.String(), nullable=True, index=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("manufacturer", sa.String(), nullable=True),
        sa.Column("mold", sa.String(), nullable=True),
        sa.Column("plastic", sa.String(), nullable=True),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("weight", sa.Integer(), nullable=True),
        sa.Column("flight_numbers", sa.JSON(), nullable=True),
        sa.Column("reward_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("qr_code_id", sa.Integer(), sa.ForeignKey("qr_codes.id"), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "disc_photos",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("disc_id", sa.Integer(), sa.ForeignKey("discs.id"), nullable=False, index=True),
        sa.Column("storage_path", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "recovery_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("disc_id", sa.Integer(), sa.ForeignKey("discs.id"), nullable=False, index=True),
        sa.Column("finder_id", sa.String(), nullable=True, index=True),
        sa.Column("status", sa.String(), nullable=False, index=True),
        sa.Column("found_at", sa.DateTime(), nullable=False),
        sa.Column("recovered_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event", sa.String(), nullable=False, index=True),
        sa.Column("user_id", sa.String(), nullable=True, index=True),
        sa.Column("subject", sa.String(), nullable=True, index=True),
        sa.Column("ip", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "error_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=True, index=True),
        sa.Column("endpoint", sa.String(), nullable=True),
        sa.Column("method", sa.String(), nullable=True),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column("stack_trace", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    for table in _TABLES:
        op.drop_table(table)
