"""add favorite enrichment columns

Revision ID: 9e4d2f6b8c13
Revises: 5b1e0c7a2d41
Create Date: 2026-05-14 09:42:00.000000
"""

from __future__ import annotations

from typing import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "9e4d2f6b8c13"
down_revision: str | None = "5b1e0c7a2d41"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

_TEXT_COLUMNS = (
    "meaning",
    "origin",
    "description",
    "informativeDescription",
    "poeticDescription",
    "history",
)


def upgrade() -> None:
    op.add_column("favorites", sa.Column("user_email", sa.String(length=255), nullable=True))
    for column_name in _TEXT_COLUMNS:
        op.add_column("favorites", sa.Column(column_name, sa.Text(), nullable=True))
    op.add_column(
        "favorites",
        sa.Column("usedWiki", sa.Boolean(), nullable=True, server_default=sa.false()),
    )


def downgrade() -> None:
    op.drop_column("favorites", "usedWiki")
    for column_name in reversed(_TEXT_COLUMNS):
        op.drop_column("favorites", column_name)
    op.drop_column("favorites", "user_email")
