"""add detail attributes

Revision: 3
Revises: 2
Create Date: 2025-07-01 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from speciesdex.db.migrations.inspection import clear_table, has_column

revision: int = 3
name: str = "add_detail_attributes"


def upgrade() -> None:
    """Add the attributes payload and drop detail rows cached without it."""

    if not has_column("detail_record", "attributes"):
        op.add_column(
            "detail_record",
            sa.Column(
                "attributes",
                sa.Text(),
                nullable=False,
                server_default=sa.text("'[]'"),
            ),
        )
    # Rows cached before this version have no real attributes; re-fetch them.
    clear_table("detail_record")
