"""Initial schema: runs

Revision ID: 001
Revises:
Create Date: 2024-11-02 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Check if tables already exist and skip if so
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = inspector.get_table_names()

    if "runs" in existing_tables:
        return

    # Create runs table
    op.create_table(
        "runs",
        sa.Column("run_id", sa.Text, primary_key=True),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("inputs", sa.JSON().with_variant(JSONB, "postgresql"), nullable=False),
        sa.Column("image_url", sa.Text),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime),
    )
    op.create_index("idx_runs_user_id", "runs", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_runs_user_id", table_name="runs")
    op.drop_table("runs")
