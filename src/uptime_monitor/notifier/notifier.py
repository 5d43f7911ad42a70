"""
Alert dispatch for availability transitions.

The notifier renders the DOWN and UP alerts of a site and hands them to the
messaging transport. Delivery is best-effort: nothing raised while resolving,
rendering or sending ever leaves this module, so a broken transport can never
interrupt a check cycle.
"""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Callable, Dict, Optional

from uptime_monitor.clock import utc_now
from uptime_monitor.contracts import Messenger
from uptime_monitor.domain import EventKind, NotifyType, Site
from uptime_monitor.notifier.templates import (
    TemplateResolver,
    format_duration,
    format_time,
    render_template,
)

# Module logger
logger = logging.getLogger(__name__)


class Notifier:
    """Resolves, renders and sends the alerts of a site."""

    def __init__(
        self,
        messenger: Messenger,
        resolver: TemplateResolver,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Args:
            messenger: The transport used to deliver alerts.
            resolver: Chooses the template of each alert.
            tz: The timezone the '{time}' variable is rendered in.
            clock: Returns the current instant.
        """
        self._messenger: Messenger = messenger
        self._resolver: TemplateResolver = resolver
        self._tz: tzinfo = tz
        self._clock: Callable[[], datetime] = clock

    async def notify_down(self, site: Site, error: str, status_code: Optional[int] = None) -> bool:
        """
        Sends the DOWN alert of a site.

        Args:
            site: The site that went down.
            error: Why the probe failed.
            status_code: The HTTP status code, if a response was received.

        Returns:
            bool: True if the alert was handed to the transport.
        """
        variables = {
            "name": site.name,
            "url": site.url,
            "error": error,
            "statusCode": str(status_code) if status_code is not None else "",
        }
        return await self._notify(site, EventKind.DOWN, variables)

    async def notify_up(self, site: Site, downtime_seconds: int) -> bool:
        """
        Sends the UP alert of a site.

        Args:
            site: The site that recovered.
            downtime_seconds: How long the resolved incident lasted.

        Returns:
            bool: True if the alert was handed to the transport.
        """
        variables = {
            "name": site.name,
            "url": site.url,
            "downtime": format_duration(downtime_seconds),
        }
        return await self._notify(site, EventKind.UP, variables)

    async def _notify(self, site: Site, event: EventKind, variables: Dict[str, str]) -> bool:
        if not site.notify_target:
            logger.debug(f"Site {site.name} has no notification target, skipping {event.value} alert")
            return False

        try:
            if not self._messenger.is_ready():
                logger.warning(
                    f"Messenger not ready, {event.value} alert for {site.name} was not sent"
                )
                return False

            template = await self._resolver.resolve(site, event)
            message = render_template(
                template, {**variables, "time": format_time(self._clock(), self._tz)}
            )

            if site.notify_type == NotifyType.GROUP.value:
                await self._messenger.send_to_group(site.notify_target, message)
            else:
                await self._messenger.send_direct(site.notify_target, message)
        except Exception as e:
            logger.exception(f"Failed to send {event.value} alert for {site.name}: {e}")
            return False

        logger.info(f"Sent {event.value} alert for {site.name} to {site.notify_type}:{site.notify_target}")
        return True
