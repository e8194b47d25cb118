"""Initial schema: users with a flat list of secret strings.

Revision ID: 001
Revises: None
Create Date: 2025-01-12
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # If the table already exists (pre-Alembic database), skip creation.
    conn = op.get_bind()
    result = conn.execute(
        sa.text("SELECT name FROM sqlite_master WHERE type='table' AND name='users'")
    )
    if result.fetchone() is not None:
        return

    op.create_table(
        "users",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("email", sa.Text, unique=True),
        sa.Column("password_hash", sa.Text),
        sa.Column("google_id", sa.Text),
        sa.Column("secrets", sa.Text, nullable=False, server_default="[]"),
        sa.Column("created_at", sa.Float, nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("users")
