"""Create saved_analyses table.

Revision ID: 0001_saved_analyses
Revises: None
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_saved_analyses"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "saved_analyses",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'active'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("session_id", sa.Text(), nullable=True),
        sa.Column("session_name", sa.Text(), nullable=True),
        sa.Column("total_impressions", sa.Integer(), nullable=True, server_default=sa.text("0")),
        sa.Column("total_clicks", sa.Integer(), nullable=True, server_default=sa.text("0")),
        sa.Column("total_cost", sa.Float(), nullable=True, server_default=sa.text("0")),
        sa.Column("average_ctr", sa.Float(), nullable=True, server_default=sa.text("0")),
        sa.Column("average_cpc", sa.Float(), nullable=True, server_default=sa.text("0")),
        sa.Column("average_cpa", sa.Float(), nullable=True, server_default=sa.text("0")),
        sa.Column("dealership_context", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("analytics_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("ai_insights", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    )
    op.create_index("idx_saved_analyses_status_created", "saved_analyses", ["status", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_saved_analyses_status_created", table_name="saved_analyses")
    op.drop_table("saved_analyses")
