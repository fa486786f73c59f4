"""create favorites table

Revision ID: 5b1e0c7a2d41
Revises:
Create Date: 2026-03-02 18:10:00.000000
"""

from __future__ import annotations

from typing import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "5b1e0c7a2d41"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "favorites",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("gender", sa.String(length=16), nullable=True),
        sa.Column("theme", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_favorites_created_at", "favorites", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_favorites_created_at", table_name="favorites")
    op.drop_table("favorites")
