"""
Core interfaces for the uptime monitoring engine.

This module defines the abstract base classes the engine depends on. The
scheduler, tracker and notifier only ever talk to storage, the network and the
messaging transport through these contracts, which keeps every component
testable with mocks and lets the concrete implementations be swapped.
"""

import abc
from datetime import datetime
from typing import List, Optional

from .domain import Check, EventKind, Incident, ProbeResult, Site, SiteStatus


class SiteStore(abc.ABC):
    """
    Abstract interface for the persistence collaborator.

    Each method is one logical unit of work: implementations must not keep a
    connection or transaction open between calls.
    """

    @abc.abstractmethod
    async def find_active_sites(self) -> List[Site]:
        """
        Returns every site whose active flag is set.

        Returns:
            List[Site]: The active sites, ordered by id.
        """
        pass

    @abc.abstractmethod
    async def get_site(self, site_id: int) -> Optional[Site]:
        """
        Reads the current configuration and state of a single site.

        Args:
            site_id: The identifier of the site.

        Returns:
            Optional[Site]: The site, or None if it has been deleted.
        """
        pass

    @abc.abstractmethod
    async def update_site_status(
        self,
        site_id: int,
        status: SiteStatus,
        checked_at: datetime,
        response_time_ms: int,
    ) -> None:
        """Overwrites the last-status, last-checked and last-response fields of a site."""
        pass

    @abc.abstractmethod
    async def create_check(
        self,
        site_id: int,
        status: SiteStatus,
        status_code: Optional[int],
        response_time_ms: int,
        error_message: Optional[str],
        checked_at: datetime,
    ) -> Check:
        """Appends a check row and returns it."""
        pass

    @abc.abstractmethod
    async def create_incident(self, site_id: int, started_at: datetime) -> Incident:
        """Opens a new incident for the site and returns it."""
        pass

    @abc.abstractmethod
    async def find_open_incident(self, site_id: int) -> Optional[Incident]:
        """
        Finds the most recently started unresolved incident of a site.

        Args:
            site_id: The identifier of the site.

        Returns:
            Optional[Incident]: The open incident, or None if the site has none.
        """
        pass

    @abc.abstractmethod
    async def resolve_incident(
        self, incident_id: int, resolved_at: datetime, duration_seconds: int
    ) -> None:
        """Closes an incident, recording its resolution time and duration."""
        pass

    @abc.abstractmethod
    async def mark_incident_notified(self, incident_id: int, event: EventKind) -> None:
        """Records that the DOWN or UP alert of an incident was handed to the transport."""
        pass

    @abc.abstractmethod
    async def delete_checks_older_than(self, cutoff: datetime) -> int:
        """
        Deletes every check recorded strictly before the cutoff.

        Args:
            cutoff: The oldest timestamp to keep.

        Returns:
            int: The number of deleted rows.
        """
        pass

    @abc.abstractmethod
    async def get_setting(self, key: str) -> Optional[str]:
        """Returns the value of a global setting, or None when it is not set."""
        pass


class SiteFetcher(abc.ABC):
    """
    Abstract interface for a component that probes a single URL.

    Its responsibility is to encapsulate the network I/O of one check and
    return a normalized result.
    """

    @abc.abstractmethod
    async def fetch(self, url: str) -> ProbeResult:
        """
        Performs one HTTP check against the given URL.

        Args:
            url: The URL to probe.

        Returns:
            ProbeResult: The normalized outcome of the probe.

        Raises:
            Exception: Implementations must report network errors inside the
                ProbeResult rather than raising them.
        """
        pass


class Messenger(abc.ABC):
    """
    Abstract interface for the messaging transport.

    Sends are best-effort: they may raise, and callers are expected to catch
    and log the failure.
    """

    @abc.abstractmethod
    def is_ready(self) -> bool:
        """Returns whether the transport is currently able to deliver messages."""
        pass

    @abc.abstractmethod
    async def send_direct(self, recipient_id: str, text: str) -> None:
        """Sends a text to a single person."""
        pass

    @abc.abstractmethod
    async def send_to_group(self, group_id: str, text: str) -> None:
        """Sends a text to a group chat."""
        pass
