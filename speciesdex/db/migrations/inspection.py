"""Existence checks used by migration steps to stay idempotent-safe.

The helpers inspect the connection bound to Alembic's ``op`` proxy, so they can
only be called from inside a running migration step.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


def has_table(table_name: str) -> bool:
    inspector = sa.inspect(op.get_bind())
    return inspector.has_table(table_name)


def has_column(table_name: str, column_name: str) -> bool:
    inspector = sa.inspect(op.get_bind())
    if not inspector.has_table(table_name):
        return False
    return any(column["name"] == column_name for column in inspector.get_columns(table_name))


def has_index(table_name: str, index_name: str) -> bool:
    inspector = sa.inspect(op.get_bind())
    if not inspector.has_table(table_name):
        return False
    return any(index["name"] == index_name for index in inspector.get_indexes(table_name))


def clear_table(table_name: str) -> None:
    """Delete every row of ``table_name`` (forces a re-fetch of cached data)."""

    if has_table(table_name):
        op.execute(sa.text(f"DELETE FROM {table_name}"))
