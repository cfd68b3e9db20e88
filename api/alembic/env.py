"""Alembic environment for the catalog schema.

Migrations run on a synchronous psycopg2 connection derived from the
application's asyncpg DATABASE_URL. Online runs hold a PostgreSQL advisory
lock so that replicas starting together apply each revision exactly once.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import Connection, create_engine, text

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import models  # noqa: E402,F401  (registers tables on Base.metadata)
from alembic import context  # noqa: E402
from core.config import get_settings  # noqa: E402
from core.database import Base  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata

MIGRATION_LOCK_KEY = 518_204_337
LOCK_WAIT_SECONDS = 120
LOCK_POLL_SECONDS = 2


def sync_database_url() -> str:
    return get_settings().database_url.replace("+asyncpg", "+psycopg2", 1)


@contextmanager
def migration_lock(connection: Connection) -> Iterator[None]:
    """Hold the migration advisory lock for the duration of the block.

    Non-PostgreSQL dialects run unlocked.
    """
    if connection.dialect.name != "postgresql":
        yield
        return

    deadline = time.monotonic() + LOCK_WAIT_SECONDS
    params = {"key": MIGRATION_LOCK_KEY}
    while not connection.execute(
        text("SELECT pg_try_advisory_lock(:key)"), params
    ).scalar():
        if time.monotonic() >= deadline:
            raise RuntimeError(
                f"Could not acquire the migration lock within {LOCK_WAIT_SECONDS}s"
            )
        logger.info("Another process is migrating; waiting for the lock")
        time.sleep(LOCK_POLL_SECONDS)
    # Session-level lock; commit so Alembic starts a clean transaction
    connection.commit()

    try:
        yield
    finally:
        try:
            connection.execute(text("SELECT pg_advisory_unlock(:key)"), params)
        except Exception:
            # Released with the session anyway
            logger.warning("Failed to release migration lock", exc_info=True)


def run_migrations_offline() -> None:
    context.configure(
        url=sync_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(sync_database_url())
    try:
        with engine.connect() as connection, migration_lock(connection):
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                compare_type=True,
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
