import asyncio
import logging
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import app.core.models  # noqa: F401  registers every table on Base.metadata
from app.core.logging_config import setup_logging
from app.db.session import Base, engine

logger = logging.getLogger(__name__)


def _missing_tables(sync_conn) -> List[str]:
    existing = set(inspect(sync_conn).get_table_names())
    return [name for name in Base.metadata.tables if name not in existing]


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """
    Ensure that all fee tables exist in the connected database.
    Missing tables are created; existing ones are left untouched. Returns the created table names.
    """
    async with db_engine.begin() as conn:
        missing = await conn.run_sync(_missing_tables)
        if missing:
            await conn.run_sync(Base.metadata.create_all)

    if missing:
        logger.info("Created missing tables: %s", ", ".join(missing))
    else:
        logger.info("All required fee tables already exist in the database.")
    return missing


async def main() -> None:
    setup_logging()
    await ensure_tables(engine)


if __name__ == "__main__":
    asyncio.run(main())
