"""add favorites table

Revision: 2
Revises: 1
Create Date: 2025-06-14 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from speciesdex.db.migrations.inspection import has_index, has_table

revision: int = 2
name: str = "add_favorites_table"


def upgrade() -> None:
    """Create the favorites table; cached list and detail rows stay valid."""

    if not has_table("favorite"):
        op.create_table(
            "favorite",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
            sa.Column("key", sa.String(), nullable=False),
            sa.Column("added_at", sa.BigInteger(), nullable=False),
            sa.UniqueConstraint("key", name="uq_favorite_key"),
        )
    if not has_index("favorite", "ix_favorite_key"):
        op.create_index("ix_favorite_key", "favorite", ["key"])
