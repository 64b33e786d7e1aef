"""Initial schema for reconciler."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

TRANSACTION_TABLES = ("expenses", "sales")


def upgrade() -> None:
    transaction_status_enum = sa.Enum("pending", "matched", "ignored", name="transaction_status_enum")
    transaction_kind_enum = sa.Enum("expense", "sale", name="transaction_kind_enum")
    batch_status_enum = sa.Enum("processing", "completed", "failed", name="csv_batch_status_enum")
    match_strategy_enum = sa.Enum(
        "amount_only",
        "amount_and_date",
        "fuzzy_match",
        name="match_strategy_enum",
    )

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "csv_batches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("kind", transaction_kind_enum, nullable=False),
        sa.Column("total_rows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processed_rows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", batch_status_enum, nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_csv_batches_user_id", "csv_batches", ["user_id"])

    for table in TRANSACTION_TABLES:
        op.create_table(
            table,
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
            sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
            sa.Column("txn_date", sa.Date(), nullable=False),
            sa.Column("amount", sa.Numeric(18, 2), nullable=False),
            sa.Column("counterparty_name", sa.String(length=255), nullable=True),
            sa.Column("description", sa.Text(), nullable=False, server_default=""),
            sa.Column("status", transaction_status_enum, nullable=False),
            sa.Column("matched_counterpart_id", postgresql.UUID(as_uuid=True), nullable=True),
            sa.Column("batch_id", postgresql.UUID(as_uuid=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["batch_id"], ["csv_batches.id"], ondelete="SET NULL"),
            # matched rows always carry their counterpart and pending/ignored rows never do
            sa.CheckConstraint(
                "(status = 'matched') = (matched_counterpart_id IS NOT NULL)",
                name=f"ck_{table}_counterpart_iff_matched",
            ),
        )
        op.create_index(f"ix_{table}_user_id", table, ["user_id"])
        op.create_index(f"ix_{table}_txn_date", table, ["txn_date"])
        op.create_index(f"ix_{table}_status", table, ["status"])
        op.create_index(f"ix_{table}_batch_id", table, ["batch_id"])

    op.create_table(
        "match_settings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date_tolerance_days", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("auto_match_threshold", sa.Integer(), nullable=False, server_default="95"),
        sa.Column("match_strategy", match_strategy_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", name="uq_match_settings_user"),
        sa.CheckConstraint("date_tolerance_days BETWEEN 0 AND 365", name="ck_match_settings_tolerance"),
        sa.CheckConstraint("auto_match_threshold BETWEEN 50 AND 100", name="ck_match_settings_threshold"),
    )
    op.create_index("ix_match_settings_user_id", "match_settings", ["user_id"])


def downgrade() -> None:
    op.drop_table("match_settings")
    for table in reversed(TRANSACTION_TABLES):
        op.drop_table(table)
    op.drop_table("csv_batches")
    op.drop_table("users")

    op.execute("DROP TYPE IF EXISTS match_strategy_enum")
    op.execute("DROP TYPE IF EXISTS csv_batch_status_enum")
    op.execute("DROP TYPE IF EXISTS transaction_kind_enum")
    op.execute("DROP TYPE IF EXISTS transaction_status_enum")
