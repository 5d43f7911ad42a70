"""
HTTP probe implementation using the aiohttp library.

This module provides an implementation of the SiteFetcher interface that uses
the aiohttp library to perform one bounded GET request per check. It measures
the response time and classifies the outcome into a normalized ProbeResult.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

import aiohttp

from uptime_monitor.config.constants import DEFAULT_PROBE_TIMEOUT, DEFAULT_USER_AGENT
from uptime_monitor.contracts import SiteFetcher
from uptime_monitor.domain import ProbeResult, SiteStatus

# Module logger
logger = logging.getLogger(__name__)


def describe_error(error: BaseException) -> str:
    """
    Returns a human readable description of a transport error.

    Some aiohttp errors carry no message, in which case the exception type
    name is used so that a check never records an empty error.
    """
    description = str(error).strip()
    return description or type(error).__name__


class AiohttpFetcher(SiteFetcher):
    """
    A concrete implementation of SiteFetcher using the aiohttp library.

    Every probe is a GET request with a fixed User-Agent that follows
    redirects and is bounded by a hard total timeout. The fetcher never
    retries and never raises: every failure is reported as a DOWN result.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: int = DEFAULT_PROBE_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initializes the fetcher with a shared aiohttp ClientSession.

        Args:
            session: An active aiohttp.ClientSession to be used for requests.
            timeout: Hard timeout in seconds for the whole request.
            user_agent: The User-Agent header sent with every probe.
            clock: Monotonic time source in seconds used to measure latency.
        """
        if not isinstance(timeout, int) or timeout < 1:
            raise ValueError("timeout must be a positive integer.")

        self._session: aiohttp.ClientSession = session
        self._timeout: int = timeout
        self._user_agent: str = user_agent
        self._clock: Callable[[], float] = clock

    async def fetch(self, url: str) -> ProbeResult:
        """
        Performs one GET request against the URL and classifies the outcome.

        The response time is measured from the start of the request until the
        response headers are received or the request fails. The body is never
        read.

        Args:
            url: The URL to probe.

        Returns:
            ProbeResult: UP for status codes below 400, DOWN for anything else,
                including timeouts and transport errors.
        """
        logger.debug(f"Starting probe for {url}")
        status_code: Optional[int] = None
        error_message: Optional[str] = None
        start_time: float = self._clock()
        end_time: Optional[float] = None

        try:
            async with self._session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={"User-Agent": self._user_agent},
                allow_redirects=True,
            ) as response:
                status_code = response.status
                end_time = self._clock()
        except asyncio.TimeoutError:
            error_message = f"Timeout ({self._timeout}s)"
        except Exception as e:
            error_message = describe_error(e)

        if end_time is None:
            end_time = self._clock()
        response_time_ms = max(0, int((end_time - start_time) * 1000))

        if status_code is None:
            logger.info(f"Probe for {url} failed after {response_time_ms}ms: {error_message}")
            return ProbeResult(
                status=SiteStatus.DOWN,
                status_code=None,
                response_time_ms=response_time_ms,
                error_message=error_message,
            )

        if status_code >= 400:
            return ProbeResult(
                status=SiteStatus.DOWN,
                status_code=status_code,
                response_time_ms=response_time_ms,
                error_message=f"HTTP {status_code}",
            )

        logger.debug(f"Probed {url} in {response_time_ms}ms with status {status_code}")
        return ProbeResult(
            status=SiteStatus.UP,
            status_code=status_code,
            response_time_ms=response_time_ms,
            error_message=None,
        )
