"""
HTTP client configuration module for the uptime monitoring engine.

This module creates the aiohttp client session shared by the probe executor
and the messaging gateway client.
"""

import logging

import aiohttp

from uptime_monitor.config import MonitoringContext

# Module logger
logger = logging.getLogger(__name__)


def get_http_session(context: MonitoringContext) -> aiohttp.ClientSession:
    """
    Create the HTTP client session used for probes and gateway calls.

    Using a shared session is recommended for performance reasons. The
    session sends the configured User-Agent by default; per-request timeouts
    are applied by the callers.

    Args:
        context: Configuration context containing HTTP client settings.

    Returns:
        aiohttp.ClientSession: A configured HTTP client session.
    """
    logger.debug(f"Creating HTTP session with User-Agent {context.user_agent}")
    return aiohttp.ClientSession(headers={"User-Agent": context.user_agent})
