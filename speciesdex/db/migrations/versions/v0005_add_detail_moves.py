"""add detail moves

Revision: 5
Revises: 4
Create Date: 2025-09-20 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from speciesdex.db.migrations.inspection import clear_table, has_column

revision: int = 5
name: str = "add_detail_moves"


def upgrade() -> None:
    """Add the learnable moves payload and drop detail rows cached without it."""

    if not has_column("detail_record", "moves"):
        op.add_column(
            "detail_record",
            sa.Column(
                "moves",
                sa.Text(),
                nullable=False,
                server_default=sa.text("'[]'"),
            ),
        )
    clear_table("detail_record")
