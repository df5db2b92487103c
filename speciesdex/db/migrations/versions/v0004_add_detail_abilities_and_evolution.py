"""add detail abilities and evolution reference

Revision: 4
Revises: 3
Create Date: 2025-08-09 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from speciesdex.db.migrations.inspection import clear_table, has_column

revision: int = 4
name: str = "add_detail_abilities_and_evolution"


def upgrade() -> None:
    """Add abilities and the evolution reference, then invalidate cached details."""

    if not has_column("detail_record", "abilities"):
        op.add_column(
            "detail_record",
            sa.Column(
                "abilities",
                sa.Text(),
                nullable=False,
                server_default=sa.text("'[]'"),
            ),
        )
    if not has_column("detail_record", "evolution_ref"):
        op.add_column(
            "detail_record",
            sa.Column("evolution_ref", sa.String(), nullable=True),
        )
    clear_table("detail_record")
