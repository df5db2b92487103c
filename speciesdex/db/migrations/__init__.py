"""Ordered, versioned schema migrations for the local catalog cache.

Each module under :mod:`speciesdex.db.migrations.versions` declares an integer
``revision``, a ``name`` and an ``upgrade()`` function written against
Alembic's ``op`` proxy. :func:`apply_migration_step` binds that proxy to a live
connection through :class:`alembic.runtime.migration.MigrationContext`, runs
the step and bumps the persisted schema version in the same transaction.

Rules every step follows:

* steps only add structure, or clear cached rows whose shape became stale;
* no step touches the ``favorite`` table after creating it;
* every DDL statement is preceded by an existence check so re-running a step
  that was already (partially) applied leaves the data intact.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection

from speciesdex.db.models import StoreMetadata

from .versions import (
    v0001_initial_catalog_tables,
    v0002_add_favorites_table,
    v0003_add_detail_attributes,
    v0004_add_detail_abilities_and_evolution,
    v0005_add_detail_moves,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION_KEY = "schema_version"


@dataclass(frozen=True, slots=True)
class MigrationStep:
    """A named schema transformation that brings the store to ``version``."""

    version: int
    name: str
    upgrade: Callable[[], None]


def _step_from_module(module) -> MigrationStep:
    return MigrationStep(version=module.revision, name=module.name, upgrade=module.upgrade)


MIGRATIONS: tuple[MigrationStep, ...] = tuple(
    sorted(
        (
            _step_from_module(v0001_initial_catalog_tables),
            _step_from_module(v0002_add_favorites_table),
            _step_from_module(v0003_add_detail_attributes),
            _step_from_module(v0004_add_detail_abilities_and_evolution),
            _step_from_module(v0005_add_detail_moves),
        ),
        key=lambda step: step.version,
    )
)

CURRENT_SCHEMA_VERSION: int = MIGRATIONS[-1].version


def pending_steps(
    from_version: int,
    to_version: int,
    steps: Sequence[MigrationStep] = MIGRATIONS,
) -> list[MigrationStep]:
    """Return the steps with ``from_version < step.version <= to_version`` in order."""

    return [step for step in steps if from_version < step.version <= to_version]


def ensure_metadata_table(connection: Connection) -> None:
    StoreMetadata.__table__.create(connection, checkfirst=True)


def read_schema_version(connection: Connection) -> int:
    """Return the persisted schema version, ``0`` for a brand new store."""

    ensure_metadata_table(connection)
    value = connection.execute(
        select(StoreMetadata.value).where(StoreMetadata.key == SCHEMA_VERSION_KEY)
    ).scalar_one_or_none()
    return int(value) if value is not None else 0


def write_schema_version(connection: Connection, version: int) -> None:
    statement = sqlite_insert(StoreMetadata).values(key=SCHEMA_VERSION_KEY, value=str(version))
    statement = statement.on_conflict_do_update(
        index_elements=[StoreMetadata.key],
        set_={"value": statement.excluded.value},
    )
    connection.execute(statement)


def apply_migration_step(connection: Connection, step: MigrationStep) -> None:
    """Run ``step`` on ``connection`` and record its version.

    The persisted version only ever moves forward: re-running an older step
    leaves a newer recorded version untouched.
    """

    logger.info("Applying cache migration %s (version %s)", step.name, step.version)
    context = MigrationContext.configure(connection)
    with Operations.context(context):
        step.upgrade()
    if step.version > read_schema_version(connection):
        write_schema_version(connection, step.version)


__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "MIGRATIONS",
    "MigrationStep",
    "SCHEMA_VERSION_KEY",
    "apply_migration_step",
    "ensure_metadata_table",
    "pending_steps",
    "read_schema_version",
    "write_schema_version",
]
