"""
Shared fixtures for the engine tests.

MemorySiteStore is a small in-memory SiteStore used where a test follows state
across several checks instead of asserting single calls on a mock.
"""

from datetime import datetime
from typing import Dict, List, Optional

import pytest

from uptime_monitor.contracts import SiteStore
from uptime_monitor.domain import Check, EventKind, Incident, Site, SiteStatus


class MemorySiteStore(SiteStore):
    def __init__(self) -> None:
        self.sites: Dict[int, Site] = {}
        self.checks: List[Check] = []
        self.incidents: List[Incident] = []
        self.settings: Dict[str, str] = {}

    def add_site(self, site: Site) -> Site:
        self.sites[site.id] = site
        return site

    def open_incidents(self, site_id: int) -> List[Incident]:
        return [i for i in self.incidents if i.site_id == site_id and i.resolved_at is None]

    async def find_active_sites(self) -> List[Site]:
        return [site for _, site in sorted(self.sites.items()) if site.is_active]

    async def get_site(self, site_id: int) -> Optional[Site]:
        return self.sites.get(site_id)

    async def update_site_status(
        self, site_id: int, status: SiteStatus, checked_at: datetime, response_time_ms: int
    ) -> None:
        self.sites[site_id] = self.sites[site_id]._replace(
            last_status=status, last_checked_at=checked_at, last_response_ms=response_time_ms
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
        check = Check(
            len(self.checks) + 1,
            site_id,
            status,
            status_code,
            response_time_ms,
            error_message,
            checked_at,
        )
        self.checks.append(check)
        return check

    async def create_incident(self, site_id: int, started_at: datetime) -> Incident:
        incident = Incident(id=len(self.incidents) + 1, site_id=site_id, started_at=started_at)
        self.incidents.append(incident)
        return incident

    async def find_open_incident(self, site_id: int) -> Optional[Incident]:
        open_incidents = sorted(self.open_incidents(site_id), key=lambda i: i.started_at)
        return open_incidents[-1] if open_incidents else None

    async def resolve_incident(
        self, incident_id: int, resolved_at: datetime, duration_seconds: int
    ) -> None:
        self._update_incident(incident_id, resolved_at=resolved_at, duration_seconds=duration_seconds)

    async def mark_incident_notified(self, incident_id: int, event: EventKind) -> None:
        if event == EventKind.DOWN:
            self._update_incident(incident_id, down_notified=True)
        else:
            self._update_incident(incident_id, up_notified=True)

    async def delete_checks_older_than(self, cutoff: datetime) -> int:
        kept = [check for check in self.checks if check.checked_at >= cutoff]
        deleted = len(self.checks) - len(kept)
        self.checks = kept
        return deleted

    async def get_setting(self, key: str) -> Optional[str]:
        return self.settings.get(key)

    def _update_incident(self, incident_id: int, **changes) -> None:
        self.incidents = [
            incident._replace(**changes) if incident.id == incident_id else incident
            for incident in self.incidents
        ]


@pytest.fixture
def memory_store() -> MemorySiteStore:
    return MemorySiteStore()
