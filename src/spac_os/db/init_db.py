"""
spac_os.db.init_db

DB initialization helpers.

Responsibilities:
- Create tables for local development and tests.
- Probe schema capabilities once at startup (e.g., is the analysis-cache table migrated?).
- Keep production migration workflow separate (Alembic).
"""

from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from spac_os.db import models  # noqa: F401  # register models on Base.metadata
from spac_os.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist.
    Production runs Alembic migrations instead.
    """

    # Use a transactional DDL block when supported by the backend.
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def table_exists(engine: AsyncEngine, table_name: str) -> bool:
    async with engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).has_table(table_name))


# --- Module Notes -----------------------------------------------------------
# `table_exists` backs the startup capability flags stored on `app.state`; request
# handlers never inspect error text to discover missing tables.
