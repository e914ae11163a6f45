"""
ops_console.db.init_db

Create tables for local development and tests; production runs Alembic migrations.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from ops_console.db import models  # noqa: F401  # register tables on Base.metadata
from ops_console.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
