"""
Alert template resolution and rendering.

Templates are plain text with '{identifier}' placeholders. The effective
template for an event is chosen by precedence: the site's own override, then
the global default stored in settings, then a built-in fallback.
"""

import logging
import re
from datetime import datetime, tzinfo
from typing import Mapping, Optional

from uptime_monitor.config.constants import (
    SETTING_DEFAULT_DOWN_TEMPLATE,
    SETTING_DEFAULT_UP_TEMPLATE,
)
from uptime_monitor.contracts import SiteStore
from uptime_monitor.domain import EventKind, Site

# Module logger
logger = logging.getLogger(__name__)

DEFAULT_DOWN_TEMPLATE = "🔴 *{name}* is DOWN\nURL: {url}\nError: {error}\nTime: {time}"
DEFAULT_UP_TEMPLATE = "🟢 *{name}* is back UP\nURL: {url}\nDowntime: {downtime}\nTime: {time}"

TIME_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

_PLACEHOLDER = re.compile(r"\{(\w+)\}", re.ASCII)


def render_template(template: str, variables: Mapping[str, str]) -> str:
    """
    Substitutes every '{identifier}' placeholder in the template.

    Identifiers missing from the variables render as an empty string. Text
    outside placeholders, including unbalanced braces, is kept verbatim.

    Args:
        template: The template text.
        variables: Values keyed by placeholder identifier.

    Returns:
        str: The rendered text.
    """
    return _PLACEHOLDER.sub(lambda match: variables.get(match.group(1), ""), template)


def format_duration(seconds: int) -> str:
    """
    Renders a duration in seconds in a compact human form.

    Examples: 45 -> '45s', 125 -> '2m 5s', 120 -> '2m', 3660 -> '1h 1m', 7200 -> '2h'.
    """
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        minutes, secs = divmod(seconds, 60)
        return f"{minutes}m {secs}s" if secs else f"{minutes}m"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours}h {minutes}m" if minutes else f"{hours}h"


def format_time(moment: datetime, tz: tzinfo) -> str:
    """Renders an instant in the configured timezone, independent of the process locale."""
    return moment.astimezone(tz).strftime(TIME_FORMAT)


class TemplateResolver:
    """
    Chooses the effective template for an alert event.

    Exactly one source wins; templates are never merged.
    """

    _SETTING_KEYS = {
        EventKind.DOWN: SETTING_DEFAULT_DOWN_TEMPLATE,
        EventKind.UP: SETTING_DEFAULT_UP_TEMPLATE,
    }

    _FALLBACKS = {
        EventKind.DOWN: DEFAULT_DOWN_TEMPLATE,
        EventKind.UP: DEFAULT_UP_TEMPLATE,
    }

    def __init__(self, store: SiteStore) -> None:
        """
        Args:
            store: The persistence collaborator used to read global settings.
        """
        self._store: SiteStore = store

    async def resolve(self, site: Site, event: EventKind) -> str:
        """
        Returns the template to use for the given site and event.

        Args:
            site: The site the alert is about.
            event: DOWN or UP.

        Returns:
            str: The site override if non-empty, else the global default if
                non-empty, else the built-in fallback.
        """
        override: Optional[str] = site.down_template if event == EventKind.DOWN else site.up_template
        if override:
            return override

        setting_key = self._SETTING_KEYS[event]
        global_default = await self._store.get_setting(setting_key)
        if global_default:
            return global_default

        logger.debug(f"No {event.value} template configured for site {site.id}, using fallback")
        return self._FALLBACKS[event]
