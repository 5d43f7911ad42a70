"""
Database configuration module for the uptime monitoring engine.

This module creates the asyncpg connection pool and checks, before the engine
starts scheduling, that the database holds the tables the engine reads and
writes. Sessions run in UTC so that TIMESTAMPTZ values come back in the same
zone as the engine's own clock.
"""

import logging
from typing import FrozenSet

import asyncpg

from uptime_monitor.config import MonitoringContext

# Module logger
logger = logging.getLogger(__name__)

REQUIRED_TABLES: FrozenSet[str] = frozenset({"sites", "checks", "incidents", "settings"})

FIND_TABLES_QUERY = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = current_schema() AND table_name = ANY($1::text[])
"""


async def initiate_db_pool(context: MonitoringContext) -> asyncpg.pool.Pool:
    """
    Create the connection pool and verify the engine's schema.

    Args:
        context: Configuration context containing database connection parameters.

    Returns:
        asyncpg.pool.Pool: A connection pool whose sessions use the UTC timezone.

    Raises:
        RuntimeError: If one of the required tables does not exist.
        Exception: If the database connection cannot be established.
    """
    pool: asyncpg.pool.Pool = await asyncpg.create_pool(
        dsn=context.dsn,
        min_size=1,
        max_size=context.db_pool_size,
        server_settings={"timezone": "UTC"},
    )

    try:
        async with pool.acquire() as connection:
            rows = await connection.fetch(FIND_TABLES_QUERY, sorted(REQUIRED_TABLES))
        missing = REQUIRED_TABLES - {row["table_name"] for row in rows}
        if missing:
            raise RuntimeError(
                f"Database schema is missing tables: {', '.join(sorted(missing))}. "
                "Apply utils/schema.sql first."
            )
        logger.info("Database connection pool created and schema verified.")
        return pool
    except Exception as e:
        logger.error(f"Error: Could not initialize the database. {e}")
        await pool.close()
        raise
