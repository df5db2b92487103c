"""Versioned SQLite cache for catalog list pages, detail records and favorites.

:class:`LocalStore` is constructed explicitly and handed to the repository;
there is no module-level singleton. The backing engine is created once, on
:meth:`LocalStore.open` or lazily on first use, and disposed by
:meth:`LocalStore.close` at shutdown.

Operations and their failure modes:

* ``open`` / ``migrate`` – raise :class:`StoreOpenError` when the medium is
  unavailable, the file is not a database, a step fails, or the file was
  written by a newer schema.
* every other operation – raises :class:`StoreIOError` on driver failure. No
  retries happen at this layer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, exists, insert, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from speciesdex.db.connection import create_engine, create_session_factory, sanitize_database_url
from speciesdex.db.migrations import (
    CURRENT_SCHEMA_VERSION,
    apply_migration_step,
    pending_steps,
    read_schema_version,
)
from speciesdex.db.models import DetailRecordRow, FavoriteRow, ListItemRow
from speciesdex.errors import StoreIOError, StoreOpenError
from speciesdex.schemas.catalog import (
    Ability,
    Attribute,
    Category,
    DetailRecord,
    FavoriteRecord,
    ListItem,
    Move,
    PhysicalAttributes,
)

logger = logging.getLogger(__name__)

_CATEGORIES = TypeAdapter(list[Category])
_ATTRIBUTES = TypeAdapter(list[Attribute])
_ABILITIES = TypeAdapter(list[Ability])
_MOVES = TypeAdapter(list[Move])


def now_epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def _detail_to_row_values(record: DetailRecord) -> dict[str, object]:
    """Serialize structured sub-objects into the JSON text columns."""

    return {
        "id": record.id,
        "key": record.key,
        "height": record.physical_attributes.height,
        "weight": record.physical_attributes.weight,
        "base_experience": record.experience_base,
        "categories": _CATEGORIES.dump_json(record.categories).decode("utf-8"),
        "attributes": _ATTRIBUTES.dump_json(record.attributes).decode("utf-8"),
        "abilities": _ABILITIES.dump_json(record.abilities).decode("utf-8"),
        "moves": _MOVES.dump_json(record.moves).decode("utf-8"),
        "evolution_ref": record.evolution_ref,
    }


def _row_to_detail(row: DetailRecordRow) -> DetailRecord:
    return DetailRecord(
        id=row.id,
        key=row.key,
        physical_attributes=PhysicalAttributes(height=row.height, weight=row.weight),
        experience_base=row.base_experience,
        categories=_CATEGORIES.validate_json(row.categories),
        attributes=_ATTRIBUTES.validate_json(row.attributes),
        abilities=_ABILITIES.validate_json(row.abilities),
        moves=_MOVES.validate_json(row.moves),
        evolution_ref=row.evolution_ref,
    )


def _row_to_list_item(row: ListItemRow) -> ListItem:
    return ListItem(key=row.key, page=row.page, source_ref=row.url)


class LocalStore:
    """Durable, versioned storage for the three cached collections."""

    def __init__(
        self,
        database_url: str,
        *,
        target_version: int = CURRENT_SCHEMA_VERSION,
    ) -> None:
        if not 1 <= target_version <= CURRENT_SCHEMA_VERSION:
            raise ValueError(
                f"target_version must be between 1 and {CURRENT_SCHEMA_VERSION}, got {target_version}"
            )
        self._database_url = database_url
        self._target_version = target_version
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._schema_version: int | None = None
        self._open_lock = asyncio.Lock()
        self._closed = False

    # -- lifecycle -------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._engine is not None and not self._closed

    @property
    def engine(self) -> AsyncEngine:
        """Return the live engine; only valid between ``open`` and ``close``."""

        if self._engine is None or self._closed:
            raise StoreIOError("Local cache is not open")
        return self._engine

    async def open(self) -> LocalStore:
        """Open (creating if needed) the backing file and migrate it to the target version."""

        async with self._open_lock:
            if self._closed:
                raise StoreOpenError("Local cache was already closed")
            if self._engine is not None:
                return self

            try:
                engine = create_engine(self._database_url)
            except (OSError, ValueError, SQLAlchemyError) as exc:
                raise StoreOpenError(detail=str(exc)) from exc

            try:
                async with engine.begin() as connection:
                    current_version = await connection.run_sync(read_schema_version)

                if current_version > self._target_version:
                    raise StoreOpenError(
                        "Local cache was written by a newer version of the application",
                        detail=(
                            f"persisted schema version {current_version} is newer than "
                            f"supported version {self._target_version}"
                        ),
                    )

                if current_version < self._target_version:
                    await self._run_migrations(engine, current_version, self._target_version)
            except StoreOpenError:
                await engine.dispose()
                raise
            except (OSError, SQLAlchemyError) as exc:
                await engine.dispose()
                raise StoreOpenError(detail=str(exc)) from exc

            self._engine = engine
            self._session_factory = create_session_factory(engine)
            self._schema_version = self._target_version
            logger.info(
                "Opened catalog cache %s at schema version %s",
                sanitize_database_url(self._database_url),
                self._schema_version,
            )
            return self

    async def migrate(self, from_version: int, to_version: int) -> None:
        """Apply every migration step with ``from_version < version <= to_version``.

        Steps at or below the persisted schema version are skipped, so the
        recorded version never moves backwards.
        """

        if from_version > to_version:
            raise ValueError("Downgrade migrations are not supported")
        if to_version > CURRENT_SCHEMA_VERSION:
            raise ValueError(f"Unknown schema version {to_version}")

        persisted = await self.schema_version()
        if to_version <= persisted:
            logger.debug("Cache already at schema version %s; nothing to migrate", persisted)
            return

        await self._run_migrations(self.engine, max(from_version, persisted), to_version)
        self._schema_version = to_version

    async def _run_migrations(self, engine: AsyncEngine, from_version: int, to_version: int) -> None:
        steps = pending_steps(from_version, to_version)
        if not steps:
            return
        logger.info("Migrating catalog cache from version %s to %s", from_version, to_version)
        for step in steps:
            try:
                async with engine.begin() as connection:
                    await connection.run_sync(apply_migration_step, step)
            except (OSError, SQLAlchemyError) as exc:
                raise StoreOpenError(
                    f"Migration '{step.name}' failed",
                    detail=str(exc),
                ) from exc

    async def schema_version(self) -> int:
        """Return the schema version persisted in the backing file."""

        engine = await self._require_engine()
        try:
            async with engine.begin() as connection:
                return await connection.run_sync(read_schema_version)
        except SQLAlchemyError as exc:
            raise StoreIOError(detail=str(exc)) from exc

    async def close(self) -> None:
        """Release the backing engine; calling it again is a no-op."""

        async with self._open_lock:
            if self._closed:
                return
            self._closed = True
            if self._engine is not None:
                await self._engine.dispose()
                logger.info("Closed catalog cache %s", sanitize_database_url(self._database_url))
            self._engine = None
            self._session_factory = None

    async def __aenter__(self) -> LocalStore:
        return await self.open()

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    async def _require_engine(self) -> AsyncEngine:
        if self._closed:
            raise StoreIOError("Local cache is closed")
        if self._engine is None:
            await self.open()
        return self.engine

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session inside one transaction, mapping driver failures."""

        await self._require_engine()
        if self._session_factory is None:
            raise StoreIOError("Local cache is not open")
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            raise StoreIOError(detail=str(exc)) from exc

    # -- list pages ------------------------------------------------------------

    async def get_page(self, page: int) -> list[ListItem]:
        async with self._transaction() as session:
            result = await session.execute(
                select(ListItemRow).where(ListItemRow.page == page).order_by(ListItemRow.row_id)
            )
            rows = result.scalars().all()
        return [_row_to_list_item(row) for row in rows]

    async def put_page(self, items: Sequence[ListItem]) -> None:
        """Upsert ``items`` by key in a single atomic batch."""

        if not items:
            return
        statement = sqlite_insert(ListItemRow).values(
            [{"key": item.key, "page": item.page, "url": item.source_ref} for item in items]
        )
        statement = statement.on_conflict_do_update(
            index_elements=[ListItemRow.key],
            set_={"page": statement.excluded.page, "url": statement.excluded.url},
        )
        async with self._transaction() as session:
            await session.execute(statement)

    # -- detail records ----------------------------------------------------------

    async def get_detail(self, key: str) -> DetailRecord | None:
        async with self._transaction() as session:
            result = await session.execute(select(DetailRecordRow).where(DetailRecordRow.key == key))
            row = result.scalars().one_or_none()
        if row is None:
            return None
        try:
            return _row_to_detail(row)
        except (ValidationError, ValueError) as exc:
            # An unreadable payload behaves like a miss so the next fetch overwrites it.
            logger.warning("Ignoring unreadable cached detail for %s: %s", key, exc)
            return None

    async def put_detail(self, record: DetailRecord) -> None:
        """Upsert ``record``; an existing row with the same key or id is replaced."""

        statement = insert(DetailRecordRow).values(**_detail_to_row_values(record)).prefix_with("OR REPLACE")
        async with self._transaction() as session:
            await session.execute(statement)

    # -- favorites ---------------------------------------------------------------

    async def add_favorite(self, id: int, key: str, added_at_epoch_ms: int | None = None) -> None:
        """Mark ``id`` as a favorite; an existing favorite keeps its original timestamp."""

        added_at = added_at_epoch_ms if added_at_epoch_ms is not None else now_epoch_ms()
        statement = (
            sqlite_insert(FavoriteRow)
            .values(id=id, key=key, added_at=added_at)
            .on_conflict_do_nothing()
        )
        async with self._transaction() as session:
            await session.execute(statement)

    async def remove_favorite(self, id: int) -> None:
        async with self._transaction() as session:
            await session.execute(delete(FavoriteRow).where(FavoriteRow.id == id))

    async def is_favorite(self, id: int) -> bool:
        async with self._transaction() as session:
            result = await session.execute(select(exists().where(FavoriteRow.id == id)))
            return bool(result.scalar())

    async def list_favorites(self) -> list[FavoriteRecord]:
        async with self._transaction() as session:
            result = await session.execute(
                select(FavoriteRow).order_by(FavoriteRow.added_at.desc(), FavoriteRow.id.desc())
            )
            rows = result.scalars().all()
        return [
            FavoriteRecord(id=row.id, key=row.key, added_at_epoch_ms=row.added_at) for row in rows
        ]

    async def list_favorite_ids(self) -> list[int]:
        async with self._transaction() as session:
            result = await session.execute(
                select(FavoriteRow.id).order_by(FavoriteRow.added_at.desc(), FavoriteRow.id.desc())
            )
            return list(result.scalars().all())

    async def list_favorite_items(self) -> list[ListItem]:
        """Return cached list items that are favorites, newest favorite first.

        Favorites whose list item is not cached are omitted.
        """

        query = (
            select(ListItemRow)
            .join(FavoriteRow, FavoriteRow.key == ListItemRow.key)
            .order_by(FavoriteRow.added_at.desc(), FavoriteRow.id.desc())
        )
        async with self._transaction() as session:
            result = await session.execute(query)
            rows = result.scalars().all()
        return [_row_to_list_item(row).as_favorite() for row in rows]


__all__ = ["LocalStore", "now_epoch_ms"]
