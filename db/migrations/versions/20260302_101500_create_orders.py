"""Create orders and order_lines tables for the order service.

Revision ID: 7c3e91a4d2f0
Revises: None
Create Date: 2026-03-02 10:15:00 UTC

The users and products tables belong to the account and catalog services
and must exist before this revision runs.

Migration naming convention:
- Filename: YYYYMMDD_HHMMSS_slug.py (chronological sorting)
- Revision ID: Random hash (collision-proof for parallel branches)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "7c3e91a4d2f0"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.BigInteger,
            sa.ForeignKey("users.id", name="fk_orders_user_id"),
            nullable=False,
        ),
        sa.Column(
            "order_date", sa.Date(), nullable=False, server_default=sa.text("CURRENT_DATE")
        ),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.CheckConstraint("total > 0", name="ck_orders_total_positive"),
    )
    op.create_index("ix_orders_user_id_order_date", "orders", ["user_id", "order_date"])
    op.create_index("ix_orders_order_date", "orders", ["order_date"])

    op.create_table(
        "order_lines",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column(
            "order_id",
            sa.BigInteger,
            sa.ForeignKey("orders.id", name="fk_order_lines_order_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "product_id",
            sa.BigInteger,
            sa.ForeignKey("products.id", name="fk_order_lines_product_id"),
            nullable=False,
        ),
        sa.Column(
            "color", sa.String(length=50), nullable=False, server_default=sa.text("'Standard'")
        ),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
    )
    op.create_index("ix_order_lines_order_id", "order_lines", ["order_id"])


def downgrade() -> None:
    op.drop_index("ix_order_lines_order_id", table_name="order_lines")
    op.drop_table("order_lines")
    op.drop_index("ix_orders_order_date", table_name="orders")
    op.drop_index("ix_orders_user_id_order_date", table_name="orders")
    op.drop_table("orders")
