"""initial catalog tables

Revision: 1
Create Date: 2025-06-02 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from speciesdex.db.migrations.inspection import has_index, has_table

revision: int = 1
name: str = "initial_catalog_tables"


def upgrade() -> None:
    """Create the list cache and the first shape of the detail cache."""

    if not has_table("list_item"):
        op.create_table(
            "list_item",
            sa.Column("row_id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("key", sa.String(), nullable=False),
            sa.Column("page", sa.Integer(), nullable=False),
            sa.Column("url", sa.String(), nullable=False),
            sa.UniqueConstraint("key", name="uq_list_item_key"),
        )
    if not has_index("list_item", "ix_list_item_page"):
        op.create_index("ix_list_item_page", "list_item", ["page"])

    if not has_table("detail_record"):
        op.create_table(
            "detail_record",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
            sa.Column("key", sa.String(), nullable=False),
            sa.Column("height", sa.Integer(), nullable=False),
            sa.Column("weight", sa.Integer(), nullable=False),
            sa.Column("base_experience", sa.Integer(), nullable=False),
            sa.Column("categories", sa.Text(), nullable=False),
            sa.UniqueConstraint("key", name="uq_detail_record_key"),
        )
    if not has_index("detail_record", "ix_detail_record_key"):
        op.create_index("ix_detail_record_key", "detail_record", ["key"])
