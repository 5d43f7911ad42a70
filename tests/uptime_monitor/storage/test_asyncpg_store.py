"""
Unit tests for the PostgresSiteStore class.

This module contains tests for the PostgresSiteStore class, ensuring that
each persistence operation issues the expected SQL with the expected
parameters and maps the returned records onto domain objects.

The tests follow the Arrange-Act-Assert (AAA) pattern and mock the asyncpg
pool so that no database is needed.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from asyncpg import Pool, exceptions

from uptime_monitor.domain import EventKind, Site, SiteStatus
from uptime_monitor.storage.asyncpg_store import (
    DELETE_OLD_CHECKS_QUERY,
    FIND_ACTIVE_SITES_QUERY,
    FIND_OPEN_INCIDENT_QUERY,
    GET_SETTING_QUERY,
    GET_SITE_QUERY,
    INSERT_CHECK_QUERY,
    INSERT_INCIDENT_QUERY,
    MARK_DOWN_NOTIFIED_QUERY,
    MARK_UP_NOTIFIED_QUERY,
    RESOLVE_INCIDENT_QUERY,
    UPDATE_SITE_STATUS_QUERY,
    PostgresSiteStore,
    map_site,
    parse_row_count,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def site_record(**overrides: Any) -> Dict[str, Any]:
    record = {
        "id": 1,
        "name": "Homepage",
        "url": "https://example.com",
        "check_interval": 60,
        "is_active": True,
        "last_status": "up",
        "last_response_ms": 120,
        "last_checked_at": NOW,
        "down_template": None,
        "up_template": None,
        "notify_type": "personal",
        "notify_target": "628123456",
    }
    record.update(overrides)
    return record


def incident_record(**overrides: Any) -> Dict[str, Any]:
    record = {
        "id": 7,
        "site_id": 1,
        "started_at": NOW,
        "resolved_at": None,
        "duration_seconds": None,
        "down_notified": False,
        "up_notified": False,
    }
    record.update(overrides)
    return record


@pytest_asyncio.fixture
async def mock_conn() -> AsyncMock:
    return AsyncMock()


@pytest_asyncio.fixture
async def mock_pool(mock_conn: AsyncMock) -> MagicMock:
    """
    Creates a mock asyncpg.Pool whose acquire() yields mock_conn.

    Returns:
        MagicMock: A mock Pool.
    """
    pool = MagicMock(spec=Pool)
    pool.acquire.return_value.__aenter__.return_value = mock_conn
    pool.acquire.return_value.__aexit__.return_value = False
    return pool


@pytest_asyncio.fixture
async def store(mock_pool: MagicMock) -> PostgresSiteStore:
    return PostgresSiteStore(mock_pool)


def test_map_site_should_convert_record_to_site() -> None:
    """
    Tests that a record becomes a Site with an enum status.
    """
    # Act
    site = map_site(site_record())

    # Assert
    assert isinstance(site, Site)
    assert site.last_status == SiteStatus.UP
    assert site.notify_target == "628123456"


def test_map_site_should_default_missing_values() -> None:
    """
    Tests that NULL status and routing columns get safe defaults.
    """
    # Act
    site = map_site(site_record(last_status=None, notify_type=None, notify_target=None))

    # Assert
    assert site.last_status == SiteStatus.UNKNOWN
    assert site.notify_type == ""
    assert site.notify_target == ""


@pytest.mark.parametrize(
    "command_status, expected",
    [("DELETE 42", 42), ("DELETE 0", 0), ("", 0), (None, 0)],
)
def test_parse_row_count(command_status: Any, expected: int) -> None:
    assert parse_row_count(command_status) == expected


@pytest.mark.asyncio
async def test_find_active_sites_should_return_sites(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    """
    Tests that active sites are fetched and mapped.
    """
    # Arrange
    mock_conn.fetch.return_value = [site_record(id=1), site_record(id=2, name="Blog")]

    # Act
    sites = await store.find_active_sites()

    # Assert
    mock_conn.fetch.assert_awaited_once_with(FIND_ACTIVE_SITES_QUERY)
    assert [site.id for site in sites] == [1, 2]


@pytest.mark.asyncio
async def test_get_site_should_return_none_for_missing_site(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    """
    Tests that a deleted site reads as None.
    """
    # Arrange
    mock_conn.fetchrow.return_value = None

    # Act
    site = await store.get_site(99)

    # Assert
    mock_conn.fetchrow.assert_awaited_once_with(GET_SITE_QUERY, 99)
    assert site is None


@pytest.mark.asyncio
async def test_update_site_status_should_write_status_value(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    # Act
    await store.update_site_status(1, SiteStatus.DOWN, NOW, 15000)

    # Assert
    mock_conn.execute.assert_awaited_once_with(UPDATE_SITE_STATUS_QUERY, 1, "down", NOW, 15000)


@pytest.mark.asyncio
async def test_create_check_should_insert_and_return_check(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    """
    Tests that a check is inserted with all its fields and returned.
    """
    # Arrange
    mock_conn.fetchrow.return_value = {
        "id": 3,
        "site_id": 1,
        "status": "down",
        "status_code": 500,
        "response_time_ms": 87,
        "error_message": "HTTP 500",
        "checked_at": NOW,
    }

    # Act
    check = await store.create_check(1, SiteStatus.DOWN, 500, 87, "HTTP 500", NOW)

    # Assert
    mock_conn.fetchrow.assert_awaited_once_with(
        INSERT_CHECK_QUERY, 1, "down", 500, 87, "HTTP 500", NOW
    )
    assert check.id == 3
    assert check.status == SiteStatus.DOWN


@pytest.mark.asyncio
async def test_create_incident_should_return_open_incident(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    # Arrange
    mock_conn.fetchrow.return_value = incident_record()

    # Act
    incident = await store.create_incident(1, NOW)

    # Assert
    mock_conn.fetchrow.assert_awaited_once_with(INSERT_INCIDENT_QUERY, 1, NOW)
    assert incident.id == 7
    assert incident.resolved_at is None


@pytest.mark.asyncio
async def test_find_open_incident_should_map_record(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    # Arrange
    mock_conn.fetchrow.return_value = incident_record(started_at=NOW - timedelta(minutes=2))

    # Act
    incident = await store.find_open_incident(1)

    # Assert
    mock_conn.fetchrow.assert_awaited_once_with(FIND_OPEN_INCIDENT_QUERY, 1)
    assert incident is not None
    assert incident.started_at == NOW - timedelta(minutes=2)


def test_find_open_incident_query_should_prefer_most_recent() -> None:
    """
    Tests that the query picks the latest unresolved incident only.
    """
    assert "resolved_at IS NULL" in FIND_OPEN_INCIDENT_QUERY
    assert "ORDER BY started_at DESC" in FIND_OPEN_INCIDENT_QUERY
    assert "LIMIT 1" in FIND_OPEN_INCIDENT_QUERY


@pytest.mark.asyncio
async def test_resolve_incident_should_write_resolution(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    # Act
    await store.resolve_incident(7, NOW, 125)

    # Assert
    mock_conn.execute.assert_awaited_once_with(RESOLVE_INCIDENT_QUERY, 7, NOW, 125)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "event, query",
    [(EventKind.DOWN, MARK_DOWN_NOTIFIED_QUERY), (EventKind.UP, MARK_UP_NOTIFIED_QUERY)],
)
async def test_mark_incident_notified_should_set_matching_flag(
    store: PostgresSiteStore, mock_conn: AsyncMock, event: EventKind, query: str
) -> None:
    # Act
    await store.mark_incident_notified(7, event)

    # Assert
    mock_conn.execute.assert_awaited_once_with(query, 7)


@pytest.mark.asyncio
async def test_delete_checks_older_than_should_return_deleted_count(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    """
    Tests that the number of deleted rows is parsed from the command status.
    """
    # Arrange
    cutoff = NOW - timedelta(days=90)
    mock_conn.execute.return_value = "DELETE 12"

    # Act
    count = await store.delete_checks_older_than(cutoff)

    # Assert
    mock_conn.execute.assert_awaited_once_with(DELETE_OLD_CHECKS_QUERY, cutoff)
    assert count == 12


@pytest.mark.asyncio
async def test_get_setting_should_return_value_or_none(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    # Arrange
    mock_conn.fetchval.side_effect = ["custom {name}", None]

    # Act
    present = await store.get_setting("defaultDownTemplate")
    missing = await store.get_setting("defaultUpTemplate")

    # Assert
    mock_conn.fetchval.assert_any_await(GET_SETTING_QUERY, "defaultDownTemplate")
    assert present == "custom {name}"
    assert missing is None


@pytest.mark.asyncio
async def test_store_should_propagate_database_errors(
    store: PostgresSiteStore, mock_conn: AsyncMock
) -> None:
    """
    Tests that database errors are left to the caller.
    """
    # Arrange
    mock_conn.execute.side_effect = exceptions.PostgresError("connection lost")

    # Act & Assert
    with pytest.raises(exceptions.PostgresError):
        await store.update_site_status(1, SiteStatus.UP, NOW, 10)
