"""Record line items and stock movements tagged with the record serial

Revision ID: 002_record_items
Revises: 001_initial
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_record_items"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("inventory_logs", sa.Column("record_serial", sa.String(20), nullable=True))
    op.create_index("ix_inventory_logs_record_serial", "inventory_logs", ["record_serial"], unique=False)

    op.create_table(
        "donation_items",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("donation_id", sa.BigInteger(), nullable=False),
        sa.Column("item_stock_id", sa.BigInteger(), nullable=False),
        sa.Column("item_name", sa.String(200), nullable=False),
        sa.Column("item_category", sa.String(100), nullable=False),
        sa.Column("item_unit", sa.String(50), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("is_standard", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["donation_id"], ["donation_records.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["item_stock_id"], ["item_stocks.id"]),
        sa.CheckConstraint("quantity > 0", name="ck_donation_items_quantity_positive"),
    )
    op.create_index("ix_donation_items_donation_id", "donation_items", ["donation_id"], unique=False)
    op.create_index("ix_donation_items_item_stock_id", "donation_items", ["item_stock_id"], unique=False)

    op.create_table(
        "disbursement_items",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("disbursement_id", sa.BigInteger(), nullable=False),
        sa.Column("item_stock_id", sa.BigInteger(), nullable=False),
        sa.Column("item_name", sa.String(200), nullable=False),
        sa.Column("item_category", sa.String(100), nullable=False),
        sa.Column("item_unit", sa.String(50), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["disbursement_id"], ["disbursements.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["item_stock_id"], ["item_stocks.id"]),
        sa.CheckConstraint("quantity > 0", name="ck_disbursement_items_quantity_positive"),
    )
    op.create_index("ix_disbursement_items_disbursement_id", "disbursement_items", ["disbursement_id"], unique=False)
    op.create_index("ix_disbursement_items_item_stock_id", "disbursement_items", ["item_stock_id"], unique=False)


def downgrade() -> None:
    op.drop_table("disbursement_items")
    op.drop_table("donation_items")
    op.drop_index("ix_inventory_logs_record_serial", table_name="inventory_logs")
    op.drop_column("inventory_logs", "record_serial")
