"""Initial tables: item stock, inventory logs, change reasons, serial counters, records

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    # Item stock - current quantity per (category, name)
    op.create_table(
        "item_stocks",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("unit", sa.String(50), nullable=False, server_default=""),
        sa.Column("total_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("safety_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_standard", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("category", "name", name="uq_item_stocks_category_name"),
        sa.CheckConstraint("total_stock >= 0", name="ck_item_stocks_total_stock_non_negative"),
        sa.CheckConstraint("safety_stock >= 0", name="ck_item_stocks_safety_stock_non_negative"),
    )
    op.create_index("ix_item_stocks_category", "item_stocks", ["category"], unique=False)

    # Inventory logs - one row per stock change
    op.create_table(
        "inventory_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("item_stock_id", sa.BigInteger(), nullable=False),
        sa.Column("reason", sa.String(100), nullable=False),
        sa.Column("change_type", sa.String(20), nullable=False),
        sa.Column("change_amount", sa.Integer(), nullable=False),
        sa.Column("previous_quantity", sa.Integer(), nullable=False),
        sa.Column("new_quantity", sa.Integer(), nullable=False),
        sa.Column("is_absolute", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("actor_id", sa.String(100), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["item_stock_id"], ["item_stocks.id"]),
        sa.CheckConstraint("change_amount >= 0", name="ck_inventory_logs_change_amount_non_negative"),
    )
    op.create_index("ix_inventory_logs_item_stock_id", "inventory_logs", ["item_stock_id"], unique=False)
    op.create_index("ix_inventory_logs_change_type", "inventory_logs", ["change_type"], unique=False)
    op.create_index("ix_inventory_logs_created_at", "inventory_logs", ["created_at"], unique=False)

    # Change reasons - permitted (reason, change_type) pairs
    op.create_table(
        "inventory_change_reasons",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("reason", sa.String(100), nullable=False),
        sa.Column("change_type", sa.String(20), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reason", "change_type", name="uq_inventory_change_reasons_reason_type"),
    )
    op.create_index(
        "ix_inventory_change_reasons_change_type",
        "inventory_change_reasons",
        ["change_type"],
        unique=False,
    )

    # Serial number counters - one row per record type
    op.create_table(
        "serial_number_counters",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("serial_type", sa.String(50), nullable=False),
        sa.Column("prefix", sa.String(10), nullable=False, server_default=""),
        sa.Column("counter", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("serial_type"),
        sa.CheckConstraint("counter >= 0", name="ck_serial_number_counters_counter_non_negative"),
    )

    # Serial-numbered records
    op.create_table(
        "donation_records",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("serial_number", sa.String(20), nullable=True),
        sa.Column("donor_name", sa.String(200), nullable=False),
        sa.Column("donor_phone", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("actor_id", sa.String(100), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_donation_records_serial_number", "donation_records", ["serial_number"], unique=False)
    op.create_index("ix_donation_records_created_at", "donation_records", ["created_at"], unique=False)

    op.create_table(
        "disbursements",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("serial_number", sa.String(20), nullable=True),
        sa.Column("recipient_unit_name", sa.String(200), nullable=False),
        sa.Column("recipient_phone", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("actor_id", sa.String(100), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_disbursements_serial_number", "disbursements", ["serial_number"], unique=False)
    op.create_index("ix_disbursements_created_at", "disbursements", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_table("disbursements")
    op.drop_table("donation_records")
    op.drop_table("serial_number_counters")
    op.drop_table("inventory_change_reasons")
    op.drop_table("inventory_logs")
    op.drop_table("item_stocks")
