"""SQLite connection and schema setup for the section and job-status stores."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

SCHEMA_PATH = Path(__file__).with_name("schema.sql")
DEFAULT_DB_PATH = "data/expansions.db"

# Bump when schema.sql changes in a way existing databases must pick up.
SCHEMA_VERSION = 1


async def _init_connection(db: aiosqlite.Connection) -> None:
    # WAL lets a reader inspect a job's sections while the pipeline is still writing them.
    await db.execute("PRAGMA journal_mode = WAL")
    await db.execute("PRAGMA synchronous = NORMAL")
    await db.execute("PRAGMA busy_timeout = 5000")


async def schema_version(db: aiosqlite.Connection) -> int:
    cursor = await db.execute("PRAGMA user_version")
    row = await cursor.fetchone()
    return int(row[0]) if row else 0


async def run_migrations(db: aiosqlite.Connection) -> None:
    """Apply schema.sql once per database file, tracked through ``PRAGMA user_version``."""
    if await schema_version(db) >= SCHEMA_VERSION:
        return
    await db.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
    await db.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    await db.commit()


@asynccontextmanager
async def get_db(db_path: str = DEFAULT_DB_PATH) -> AsyncIterator[aiosqlite.Connection]:
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    db = await aiosqlite.connect(str(path))
    try:
        db.row_factory = aiosqlite.Row
        await _init_connection(db)
        await run_migrations(db)
        yield db
    finally:
        await db.close()
