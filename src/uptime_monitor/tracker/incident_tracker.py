"""
Check recording and incident lifecycle.

The incident tracker turns a probe result into persisted state: it appends the
check, refreshes the site's status fields and opens or resolves incidents on
UP/DOWN transitions. It never sends alerts itself; the returned Transition
tells the caller whether an alert is due.
"""

import logging
from datetime import datetime
from typing import Callable

from uptime_monitor.clock import utc_now
from uptime_monitor.contracts import SiteStore
from uptime_monitor.domain import ProbeResult, Site, SiteStatus, Transition, TransitionKind

# Module logger
logger = logging.getLogger(__name__)


def incident_duration(started_at: datetime, resolved_at: datetime) -> int:
    """Whole seconds between the start and the resolution of an incident, never negative."""
    return max(0, int((resolved_at - started_at).total_seconds()))


class IncidentTracker:
    """
    Records checks and maintains the incidents of every site.

    Only UP to DOWN opens an incident and only DOWN to UP resolves one. Any
    other pair of statuses, including the first check of a site whose status
    is still unknown, leaves incidents untouched. Persistence errors are not
    caught.
    """

    def __init__(self, store: SiteStore, clock: Callable[[], datetime] = utc_now) -> None:
        """
        Args:
            store: The persistence collaborator.
            clock: Returns the current instant as an aware datetime.
        """
        self._store: SiteStore = store
        self._clock: Callable[[], datetime] = clock

    async def record(self, site: Site, result: ProbeResult) -> Transition:
        """
        Persists a probe result and applies its incident side effects.

        Args:
            site: The site as read right before the probe; its last_status is
                the status the result is compared against.
            result: The outcome of the probe.

        Returns:
            Transition: What changed for the site.
        """
        now = self._clock()
        previous: SiteStatus = site.last_status

        await self._store.create_check(
            site.id,
            result.status,
            result.status_code,
            result.response_time_ms,
            result.error_message,
            now,
        )
        # Written on every check, even without a transition
        await self._store.update_site_status(site.id, result.status, now, result.response_time_ms)

        if previous == SiteStatus.UP and result.status == SiteStatus.DOWN:
            logger.warning(f"{site.name} went DOWN: {result.error_message}")
            # An incident left open by an earlier failed resolution is reused, not duplicated
            incident = await self._store.find_open_incident(site.id)
            if incident is None:
                incident = await self._store.create_incident(site.id, now)
            else:
                logger.warning(f"Reusing open incident {incident.id} for {site.name}")
            return Transition(kind=TransitionKind.WENT_DOWN, checked_at=now, incident=incident)

        if previous == SiteStatus.DOWN and result.status == SiteStatus.UP:
            incident = await self._store.find_open_incident(site.id)
            if incident is None:
                logger.warning(f"{site.name} is back UP but has no open incident to resolve")
                return Transition(kind=TransitionKind.NONE, checked_at=now)

            duration = incident_duration(incident.started_at, now)
            await self._store.resolve_incident(incident.id, now, duration)
            logger.info(f"{site.name} is back UP after {duration}s")
            return Transition(
                kind=TransitionKind.CAME_UP,
                checked_at=now,
                incident=incident._replace(resolved_at=now, duration_seconds=duration),
                downtime_seconds=duration,
            )

        return Transition(kind=TransitionKind.NONE, checked_at=now)
