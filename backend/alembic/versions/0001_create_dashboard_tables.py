"""create dashboard tables

Revision ID: 0001_create_dashboard_tables
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_create_dashboard_tables"
down_revision = None
branch_labels = None
depends_on = None

INT_COUNTERS = [
    "message",
    "plan_message",
    "net_messages",
    "lost_messages",
    "deposit",
    "silent",
    "duplicate",
    "has_user",
    "spam",
    "blocked",
    "under18",
    "over50",
    "foreign",
]
FLOAT_COUNTERS = ["spend", "plan_spend", "turnover", "turnover_adser"]


def upgrade() -> None:
    op.create_table(
        "sync_data",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("team", sa.String(length=255), nullable=False),
        sa.Column("adser", sa.String(length=255), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        *[
            sa.Column(name, sa.Integer(), nullable=False, server_default="0")
            for name in INT_COUNTERS
        ],
        *[
            sa.Column(name, sa.Float(), nullable=False, server_default="0")
            for name in FLOAT_COUNTERS
        ],
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_sync_data_id", "sync_data", ["id"])
    op.create_index("ix_sync_data_team_date", "sync_data", ["team", "date"])

    op.create_table(
        "exchange_rates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("rate", sa.Float(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_exchange_rates_id", "exchange_rates", ["id"])
    op.create_index("ix_exchange_rates_timestamp", "exchange_rates", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_exchange_rates_timestamp", table_name="exchange_rates")
    op.drop_index("ix_exchange_rates_id", table_name="exchange_rates")
    op.drop_table("exchange_rates")
    op.drop_index("ix_sync_data_team_date", table_name="sync_data")
    op.drop_index("ix_sync_data_id", table_name="sync_data")
    op.drop_table("sync_data")
