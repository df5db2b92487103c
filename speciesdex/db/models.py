"""SQLAlchemy ORM models describing the current (latest) cache schema.

Tables are created and evolved exclusively by the steps in
:mod:`speciesdex.db.migrations`; these declarations mirror the shape those
steps produce at :data:`speciesdex.db.migrations.CURRENT_SCHEMA_VERSION`.
Structured sub-objects are stored as JSON text and (de)serialized by
:class:`speciesdex.db.store.LocalStore`.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class StoreMetadata(Base):
    """Key/value bookkeeping such as the persisted schema version."""

    __tablename__ = "store_metadata"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(String, nullable=False)


class ListItemRow(Base):
    __tablename__ = "list_item"
    __table_args__ = (Index("ix_list_item_page", "page"),)

    # Surrogate rowid keeps the remote order of a page stable across upserts.
    row_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    page: Mapped[int] = mapped_column(Integer, nullable=False)
    url: Mapped[str] = mapped_column(String, nullable=False)


class DetailRecordRow(Base):
    __tablename__ = "detail_record"
    __table_args__ = (Index("ix_detail_record_key", "key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    weight: Mapped[int] = mapped_column(Integer, nullable=False)
    base_experience: Mapped[int] = mapped_column(Integer, nullable=False)
    categories: Mapped[str] = mapped_column(Text, nullable=False, doc="JSON list of categories")
    # Added by schema version 3.
    attributes: Mapped[str] = mapped_column(
        Text, nullable=False, server_default="[]", doc="JSON list of attributes"
    )
    # Added by schema version 4.
    abilities: Mapped[str] = mapped_column(
        Text, nullable=False, server_default="[]", doc="JSON list of abilities"
    )
    evolution_ref: Mapped[str | None] = mapped_column(String, nullable=True)
    # Added by schema version 5.
    moves: Mapped[str] = mapped_column(
        Text, nullable=False, server_default="[]", doc="JSON list of learnable moves"
    )


class FavoriteRow(Base):
    __tablename__ = "favorite"
    __table_args__ = (Index("ix_favorite_key", "key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    added_at: Mapped[int] = mapped_column(
        BigInteger, nullable=False, doc="Epoch milliseconds when the favorite was added"
    )


__all__ = [
    "Base",
    "DetailRecordRow",
    "FavoriteRow",
    "ListItemRow",
    "StoreMetadata",
]
