"""
Per-site check scheduling for the uptime monitoring engine.

This module provides the SiteScheduler, which owns one timer chain per active
site. Each chain re-reads its site, probes it, records the result, sends an
alert on a transition and only then arms its next timer, so checks of the same
site never overlap while checks of different sites run concurrently. A single
independent job deletes old checks periodically.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Set

from uptime_monitor.clock import utc_now
from uptime_monitor.config.constants import DEFAULT_RETENTION_DAYS, DEFAULT_RETENTION_PERIOD_HOURS
from uptime_monitor.contracts import SiteFetcher, SiteStore
from uptime_monitor.domain import EventKind, ProbeResult, Site, TransitionKind
from uptime_monitor.notifier.notifier import Notifier
from uptime_monitor.tracker.incident_tracker import IncidentTracker

# Module logger
logger = logging.getLogger(__name__)


def compute_stagger_offsets(intervals: List[int]) -> List[float]:
    """
    Computes the delay of the first check of each site.

    The shortest interval is split evenly across the sites, so that sites
    sharing an interval do not all fire at once: three sites checked every
    30 seconds start at 0, 10 and 20 seconds.

    Args:
        intervals: The check interval of each site, in seconds.

    Returns:
        List[float]: The first-check delay of each site, in the same order.
    """
    if not intervals:
        return []
    step = min(intervals) / len(intervals)
    return [index * step for index in range(len(intervals))]


class SiteScheduler:
    """
    Schedules and runs the checks of all active sites.

    The set of timers is only ever rebuilt as a whole: start() (or restart())
    cancels every pending timer and re-staggers the active sites, stop() tears
    everything down. A restart does not interrupt checks already running; when
    such a check finishes it re-reads its site and rearms only if the site is
    still active and no newer timer exists for it.
    """

    def __init__(
        self,
        store: SiteStore,
        fetcher: SiteFetcher,
        tracker: IncidentTracker,
        notifier: Notifier,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        retention_period_hours: int = DEFAULT_RETENTION_PERIOD_HOURS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initializes a new SiteScheduler instance.

        Args:
            store: The persistence collaborator.
            fetcher: Probes a site's URL.
            tracker: Records checks and maintains incidents.
            notifier: Sends alerts on transitions.
            retention_days: Checks older than this many days are deleted.
            retention_period_hours: Hours between two retention runs.
            clock: Returns the current instant.

        Raises:
            ValueError: If any of the retention parameters is invalid.
        """
        if not isinstance(retention_days, int) or retention_days < 1:
            raise ValueError("retention_days must be a positive integer.")

        if not isinstance(retention_period_hours, int) or retention_period_hours < 1:
            raise ValueError("retention_period_hours must be a positive integer.")

        self._store: SiteStore = store
        self._fetcher: SiteFetcher = fetcher
        self._tracker: IncidentTracker = tracker
        self._notifier: Notifier = notifier
        self._retention: timedelta = timedelta(days=retention_days)
        self._retention_period: float = timedelta(hours=retention_period_hours).total_seconds()
        self._clock: Callable[[], datetime] = clock

        self._is_running: bool = False
        self._timers: Dict[int, asyncio.TimerHandle] = {}
        self._intervals: Dict[int, int] = {}
        self._site_locks: Dict[int, asyncio.Lock] = {}
        self._in_flight: Set[asyncio.Task] = set()
        self._retention_task: Optional[asyncio.Task] = None

    @property
    def scheduled_site_ids(self) -> List[int]:
        """The ids of the sites that currently have a pending timer."""
        return sorted(self._timers)

    async def start(self) -> None:
        """
        Builds the timer chains of all active sites from scratch.

        Pending timers are cancelled first. The retention job is started if it
        is not already running and is left alone otherwise.
        """
        self._cancel_timers()
        self._is_running = True
        self._ensure_retention_job()

        sites: List[Site] = await self._store.find_active_sites()
        if not sites:
            logger.info("No active sites to monitor")
            return

        offsets = compute_stagger_offsets([site.check_interval for site in sites])
        for site, offset in zip(sites, offsets):
            self._intervals[site.id] = site.check_interval
            self._arm(site.id, offset, replace=True)

        min_interval = min(site.check_interval for site in sites)
        logger.info(f"Started monitoring {len(sites)} sites (staggered over {min_interval}s)")

    async def restart(self) -> None:
        """
        Rebuilds all timer chains after the set of active sites changed.

        Must be called whenever a site is created, deleted, activated or
        deactivated.
        """
        logger.info("Restarting scheduler...")
        await self.start()

    async def stop(self) -> None:
        """Cancels every pending site timer and the retention job."""
        self._is_running = False
        self._cancel_timers()

        if self._retention_task is not None:
            self._retention_task.cancel()
            await asyncio.gather(self._retention_task, return_exceptions=True)
            self._retention_task = None

        logger.info("Scheduler stopped")

    async def close(self) -> None:
        """Stops the scheduler and waits for the checks still running to finish."""
        await self.stop()
        if self._in_flight:
            logger.info(f"Waiting for {len(self._in_flight)} running checks to complete...")
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    async def check_now(self, site_id: int) -> Optional[ProbeResult]:
        """
        Runs one complete check of a site immediately.

        The site's timer chain is not touched. The check waits for any check
        of the same site already running.

        Args:
            site_id: The identifier of the site.

        Returns:
            Optional[ProbeResult]: The probe result, or None if the site does
                not exist or is inactive.
        """
        async with self._lock_for(site_id):
            site = await self._store.get_site(site_id)
            if site is None or not site.is_active:
                return None
            return await self._check(site)

    async def run_retention(self) -> int:
        """
        Deletes the checks older than the retention window.

        Returns:
            int: The number of deleted checks, 0 when the deletion failed.
        """
        cutoff = self._clock() - self._retention
        try:
            count = await self._store.delete_checks_older_than(cutoff)
        except Exception as e:
            logger.exception(f"Retention cleanup failed: {e}")
            return 0

        if count > 0:
            logger.info(f"Cleaned up {count} old checks")
        return count

    def _arm(self, site_id: int, delay: float, replace: bool = False) -> bool:
        """
        Schedules the next check of a site.

        Without 'replace', a site that already has a pending timer keeps it,
        which prevents a check that outlived a restart from creating a second
        chain for the same site.
        """
        if not self._is_running:
            return False

        existing = self._timers.get(site_id)
        if existing is not None:
            if not replace:
                logger.debug(f"Site {site_id} already has a pending check, not rearming")
                return False
            existing.cancel()

        loop = asyncio.get_running_loop()
        self._timers[site_id] = loop.call_later(delay, self._fire, site_id)
        return True

    def _fire(self, site_id: int) -> None:
        self._timers.pop(site_id, None)
        task = asyncio.create_task(self._run_tick(site_id), name=f"check-site-{site_id}")
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run_tick(self, site_id: int) -> None:
        """
        Runs one scheduled check of a site and arms the next one.

        The site is re-read first so that configuration edits apply to this
        very check. A deleted or deactivated site ends its chain. Any other
        failure is logged and the site is rearmed with the last interval known.
        """
        async with self._lock_for(site_id):
            try:
                site = await self._store.get_site(site_id)
            except Exception as e:
                logger.exception(f"Could not load site {site_id}: {e}")
            else:
                if site is None or not site.is_active:
                    logger.info(f"Site {site_id} was deleted or deactivated, stopping its checks")
                    self._intervals.pop(site_id, None)
                    self._site_locks.pop(site_id, None)
                    return

                self._intervals[site_id] = site.check_interval
                try:
                    await self._check(site)
                except Exception as e:
                    logger.exception(f"Check cycle failed for {site.name}: {e}")

        interval = self._intervals.get(site_id)
        if interval is not None:
            self._arm(site_id, interval)

    async def _check(self, site: Site) -> ProbeResult:
        """Probes a site, records the result and sends the alert of a transition."""
        result = await self._fetcher.fetch(site.url)
        transition = await self._tracker.record(site, result)

        if transition.kind == TransitionKind.WENT_DOWN:
            sent = await self._notifier.notify_down(
                site, result.error_message or "Unknown error", result.status_code
            )
            if sent and transition.incident is not None:
                await self._store.mark_incident_notified(transition.incident.id, EventKind.DOWN)

        elif transition.kind == TransitionKind.CAME_UP:
            sent = await self._notifier.notify_up(site, transition.downtime_seconds or 0)
            if sent and transition.incident is not None:
                await self._store.mark_incident_notified(transition.incident.id, EventKind.UP)

        return result

    def _lock_for(self, site_id: int) -> asyncio.Lock:
        lock = self._site_locks.get(site_id)
        if lock is None:
            lock = self._site_locks[site_id] = asyncio.Lock()
        return lock

    def _ensure_retention_job(self) -> None:
        if self._retention_task is None or self._retention_task.done():
            self._retention_task = asyncio.create_task(
                self._retention_loop(), name="checks-retention"
            )

    async def _retention_loop(self) -> None:
        while True:
            await asyncio.sleep(self._retention_period)
            await self.run_retention()

    def _cancel_timers(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
