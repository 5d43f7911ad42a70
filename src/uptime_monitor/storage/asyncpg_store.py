"""
PostgreSQL-based implementation of the SiteStore interface.

This module maps the persistence operations needed by the engine onto plain
SQL statements executed through an asyncpg connection pool. Every operation
acquires its own connection and releases it before returning, so no
connection is ever held while a probe waits on the network.
"""

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional

from asyncpg import Pool

from uptime_monitor.contracts import SiteStore
from uptime_monitor.domain import Check, EventKind, Incident, Site, SiteStatus

# Module logger
logger = logging.getLogger(__name__)

SITE_COLUMNS = """
    id, name, url, check_interval, is_active, last_status, last_response_ms,
    last_checked_at, down_template, up_template, notify_type, notify_target
"""

INCIDENT_COLUMNS = """
    id, site_id, started_at, resolved_at, duration_seconds, down_notified, up_notified
"""

FIND_ACTIVE_SITES_QUERY = f"SELECT {SITE_COLUMNS} FROM sites WHERE is_active ORDER BY id"

GET_SITE_QUERY = f"SELECT {SITE_COLUMNS} FROM sites WHERE id = $1"

UPDATE_SITE_STATUS_QUERY = """
    UPDATE sites
    SET last_status = $2, last_checked_at = $3, last_response_ms = $4
    WHERE id = $1
"""

INSERT_CHECK_QUERY = """
    INSERT INTO checks (site_id, status, status_code, response_time_ms, error_message, checked_at)
    VALUES ($1, $2, $3, $4, $5, $6)
    RETURNING id, site_id, status, status_code, response_time_ms, error_message, checked_at
"""

INSERT_INCIDENT_QUERY = f"""
    INSERT INTO incidents (site_id, started_at)
    VALUES ($1, $2)
    RETURNING {INCIDENT_COLUMNS}
"""

FIND_OPEN_INCIDENT_QUERY = f"""
    SELECT {INCIDENT_COLUMNS}
    FROM incidents
    WHERE site_id = $1 AND resolved_at IS NULL
    ORDER BY started_at DESC
    LIMIT 1
"""

RESOLVE_INCIDENT_QUERY = """
    UPDATE incidents
    SET resolved_at = $2, duration_seconds = $3
    WHERE id = $1
"""

MARK_DOWN_NOTIFIED_QUERY = "UPDATE incidents SET down_notified = TRUE WHERE id = $1"

MARK_UP_NOTIFIED_QUERY = "UPDATE incidents SET up_notified = TRUE WHERE id = $1"

DELETE_OLD_CHECKS_QUERY = "DELETE FROM checks WHERE checked_at < $1"

GET_SETTING_QUERY = "SELECT value FROM settings WHERE key = $1"


def map_site(record: Mapping[str, Any]) -> Site:
    """
    Converts a database record to a Site domain object.

    Args:
        record: A database record with the columns of SITE_COLUMNS.

    Returns:
        Site: The site, with its status converted to SiteStatus.
    """
    modified_record = {
        **record,
        "last_status": SiteStatus(record["last_status"] or SiteStatus.UNKNOWN.value),
        "notify_type": record["notify_type"] or "",
        "notify_target": record["notify_target"] or "",
    }
    return Site(**modified_record)


def map_incident(record: Mapping[str, Any]) -> Incident:
    """Converts a database record to an Incident domain object."""
    return Incident(**record)


def map_check(record: Mapping[str, Any]) -> Check:
    """Converts a database record to a Check domain object."""
    return Check(**{**record, "status": SiteStatus(record["status"])})


def parse_row_count(command_status: str) -> int:
    """
    Extracts the affected row count from an asyncpg command status.

    asyncpg returns the server's command tag, e.g. 'DELETE 42'.
    """
    try:
        return int(command_status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        logger.warning(f"Unexpected command status: {command_status!r}")
        return 0


class PostgresSiteStore(SiteStore):
    """
    A PostgreSQL implementation of the SiteStore interface.

    Exceptions raised by asyncpg are not caught here: the caller decides
    whether a failed write aborts its unit of work.
    """

    def __init__(self, pool: Pool) -> None:
        """
        Initializes the store.

        Args:
            pool: A connection pool to the PostgreSQL database.
        """
        self._pool: Pool = pool

    async def find_active_sites(self) -> List[Site]:
        async with self._pool.acquire() as conn:
            records = await conn.fetch(FIND_ACTIVE_SITES_QUERY)
        return [map_site(record) for record in records]

    async def get_site(self, site_id: int) -> Optional[Site]:
        async with self._pool.acquire() as conn:
            record = await conn.fetchrow(GET_SITE_QUERY, site_id)
        return map_site(record) if record is not None else None

    async def update_site_status(
        self,
        site_id: int,
        status: SiteStatus,
        checked_at: datetime,
        response_time_ms: int,
    ) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                UPDATE_SITE_STATUS_QUERY, site_id, status.value, checked_at, response_time_ms
            )

    async def create_check(
        self,
        site_id: int,
        status: SiteStatus,
        status_code: Optional[int],
        response_time_ms: int,
        error_message: Optional[str],
        checked_at: datetime,
    ) -> Check:
        async with self._pool.acquire() as conn:
            record = await conn.fetchrow(
                INSERT_CHECK_QUERY,
                site_id,
                status.value,
                status_code,
                response_time_ms,
                error_message,
                checked_at,
            )
        return map_check(record)

    async def create_incident(self, site_id: int, started_at: datetime) -> Incident:
        async with self._pool.acquire() as conn:
            record = await conn.fetchrow(INSERT_INCIDENT_QUERY, site_id, started_at)
        logger.debug(f"Opened incident {record['id']} for site {site_id}")
        return map_incident(record)

    async def find_open_incident(self, site_id: int) -> Optional[Incident]:
        async with self._pool.acquire() as conn:
            record = await conn.fetchrow(FIND_OPEN_INCIDENT_QUERY, site_id)
        return map_incident(record) if record is not None else None

    async def resolve_incident(
        self, incident_id: int, resolved_at: datetime, duration_seconds: int
    ) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(RESOLVE_INCIDENT_QUERY, incident_id, resolved_at, duration_seconds)
        logger.debug(f"Resolved incident {incident_id} after {duration_seconds}s")

    async def mark_incident_notified(self, incident_id: int, event: EventKind) -> None:
        query = MARK_DOWN_NOTIFIED_QUERY if event == EventKind.DOWN else MARK_UP_NOTIFIED_QUERY
        async with self._pool.acquire() as conn:
            await conn.execute(query, incident_id)

    async def delete_checks_older_than(self, cutoff: datetime) -> int:
        async with self._pool.acquire() as conn:
            command_status = await conn.execute(DELETE_OLD_CHECKS_QUERY, cutoff)
        return parse_row_count(command_status)

    async def get_setting(self, key: str) -> Optional[str]:
        async with self._pool.acquire() as conn:
            return await conn.fetchval(GET_SETTING_QUERY, key)
