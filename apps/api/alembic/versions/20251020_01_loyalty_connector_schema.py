"""Loyalty connector schema: customers, baskets, orders, payment instruments, provider state.

Revision ID: 20251020_01
Revises:
Create Date: 2025-10-20
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = "20251020_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


basket_status_enum = sa.Enum("open", "ordered", name="basket_status_enum")
order_status_enum = sa.Enum("created", "placed", "failed", name="order_status_enum")
payment_transaction_type_enum = sa.Enum("auth", "capture", "credit", name="payment_transaction_type_enum")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("customer_number", sa.String(32), nullable=True),
        sa.Column("first_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=True),
        sa.Column("phone_mobile", sa.String(32), nullable=True),
        sa.Column("phone_home", sa.String(32), nullable=True),
        sa.Column("loyalty_member_id", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_customer_number", "users", ["customer_number"], unique=True)

    op.create_table(
        "baskets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", basket_status_enum, nullable=False, server_default="open"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("total_gross_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_baskets_user_id", "baskets", ["user_id"])

    op.create_table(
        "basket_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("basket_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("product_id", sa.String(64), nullable=False),
        sa.Column("product_title", sa.String(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["basket_id"], ["baskets.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "orders",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("order_number", sa.String(), nullable=False, unique=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("basket_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", order_status_enum, nullable=False, server_default="created"),
        sa.Column("total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("placed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["basket_id"], ["baskets.id"], ondelete="SET NULL"),
    )

    op.create_table(
        "order_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("product_id", sa.String(64), nullable=False),
        sa.Column("product_title", sa.String(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "payment_instruments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("basket_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("payment_method", sa.String(64), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("custom", sa.JSON(), nullable=False),
        sa.Column("transaction_id", sa.String(64), nullable=True),
        sa.Column("transaction_type", payment_transaction_type_enum, nullable=True),
        sa.Column("payment_processor", sa.String(64), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["basket_id"], ["baskets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_payment_instruments_basket_id", "payment_instruments", ["basket_id"])
    op.create_index("ix_payment_instruments_order_id", "payment_instruments", ["order_id"])
    op.create_index("ix_payment_instruments_payment_method", "payment_instruments", ["payment_method"])

    op.create_table(
        "loyalty_cloud_state",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("program_config", sa.JSON(), nullable=True),
        sa.Column("token_refreshed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("config_refreshed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("loyalty_cloud_state")
    op.drop_index("ix_payment_instruments_payment_method", table_name="payment_instruments")
    op.drop_index("ix_payment_instruments_order_id", table_name="payment_instruments")
    op.drop_index("ix_payment_instruments_basket_id", table_name="payment_instruments")
    op.drop_table("payment_instruments")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("basket_items")
    op.drop_index("ix_baskets_user_id", table_name="baskets")
    op.drop_table("baskets")
    op.drop_index("ix_users_customer_number", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    payment_transaction_type_enum.drop(bind, checkfirst=True)
    order_status_enum.drop(bind, checkfirst=True)
    basket_status_enum.drop(bind, checkfirst=True)
