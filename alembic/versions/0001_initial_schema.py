"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:12:44.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sales_documents",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("account_id", sa.String(64), nullable=True),
        sa.Column("cadence", sa.String(10), nullable=False),
        sa.Column("reference_month", sa.String(7), nullable=False),
        sa.Column("reference_date", sa.Date(), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("uploaded_at", sa.DateTime(), nullable=False),
        sa.Column("headers", postgresql.JSONB(), nullable=False),
        sa.Column("rows", postgresql.JSONB(), nullable=False),
        sa.Column("sales", postgresql.JSONB(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sales_documents_customer_id", "sales_documents", ["customer_id"])
    op.create_index(
        "ix_sales_documents_slice",
        "sales_documents",
        ["customer_id", "account_id", "cadence", "reference_month", "reference_date"],
    )

    op.create_table(
        "metric_overrides",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("account_id", sa.String(64), nullable=True),
        sa.Column("cadence", sa.String(10), nullable=True),
        sa.Column("reference_month", sa.String(7), nullable=True),
        sa.Column("reference_date", sa.Date(), nullable=True),
        sa.Column("sale_count", sa.Integer(), nullable=True),
        sa.Column("gross_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("fee_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("net_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("updated_by", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_metric_overrides_customer_id", "metric_overrides", ["customer_id"])
    op.create_index(
        "ix_metric_overrides_key",
        "metric_overrides",
        ["customer_id", "account_id", "cadence", "reference_month", "reference_date"],
    )

    op.create_table(
        "transfers",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("customer_name", sa.String(200), nullable=True),
        sa.Column("periodo", sa.String(40), nullable=True),
        sa.Column("period_cadence", sa.String(10), nullable=True),
        sa.Column("period_year", sa.Integer(), nullable=True),
        sa.Column("period_month", sa.Integer(), nullable=True),
        sa.Column("period_day", sa.Integer(), nullable=True),
        sa.Column("gross_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("fee_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("net_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pendente"),
        sa.Column("sent_at", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transfers_customer_id", "transfers", ["customer_id"])

    op.create_table(
        "customer_fee_rates",
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("rate", sa.Numeric(7, 4), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("updated_by", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("customer_id"),
    )


def downgrade() -> None:
    op.drop_table("customer_fee_rates")
    op.drop_index("ix_transfers_customer_id", table_name="transfers")
    op.drop_table("transfers")
    op.drop_index("ix_metric_overrides_key", table_name="metric_overrides")
    op.drop_index("ix_metric_overrides_customer_id", table_name="metric_overrides")
    op.drop_table("metric_overrides")
    op.drop_index("ix_sales_documents_slice", table_name="sales_documents")
    op.drop_index("ix_sales_documents_customer_id", table_name="sales_documents")
    op.drop_table("sales_documents")
