"""
Main entry point for the uptime monitoring engine.

This module initializes and runs the engine. It sets up logging, creates the
database and HTTP connections, wires the engine components together and
handles graceful shutdown when the application is terminated.
"""

import asyncio
import logging
import signal
from zoneinfo import ZoneInfo

import aiohttp
import asyncpg

from uptime_monitor.config import MonitoringContext, get_context
from uptime_monitor.config.db_config import initiate_db_pool
from uptime_monitor.config.http_config import get_http_session
from uptime_monitor.config.logging_config import configure_logging
from uptime_monitor.fetcher.aiohttp_fetcher import AiohttpFetcher
from uptime_monitor.messaging.gateway_messenger import GatewayMessenger
from uptime_monitor.notifier.notifier import Notifier
from uptime_monitor.notifier.templates import TemplateResolver
from uptime_monitor.scheduler.site_scheduler import SiteScheduler
from uptime_monitor.storage.asyncpg_store import PostgresSiteStore
from uptime_monitor.tracker.incident_tracker import IncidentTracker


async def main(context: MonitoringContext) -> None:
    """
    Set up and run the uptime monitoring engine.

    This function initializes all components of the engine:
    1. Creates an HTTP session for probes and gateway calls
    2. Establishes the database connection pool
    3. Wires the store, fetcher, messenger, notifier, tracker and scheduler
    4. Starts the scheduler and waits for a termination signal
    5. Shuts everything down gracefully

    Args:
        context: Configuration context containing all application settings.
    """
    logger: logging.Logger = logging.getLogger(__name__)
    logger.info("Starting application...")

    # Fail fast on an unknown timezone, before any connection is opened
    tz = ZoneInfo(context.timezone)

    http_session: aiohttp.ClientSession = get_http_session(context)
    logger.info("configured: http_session")

    db_pool: asyncpg.pool.Pool = await initiate_db_pool(context)
    logger.info("initialized: db_pool")

    store = PostgresSiteStore(db_pool)
    messenger = GatewayMessenger(http_session, context.gateway_url, context.gateway_token)
    scheduler = SiteScheduler(
        store=store,
        fetcher=AiohttpFetcher(
            session=http_session,
            timeout=context.probe_timeout,
            user_agent=context.user_agent,
        ),
        tracker=IncidentTracker(store),
        notifier=Notifier(messenger, TemplateResolver(store), tz=tz),
        retention_days=context.retention_days,
        retention_period_hours=context.retention_period_hours,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Not supported on Windows event loops; KeyboardInterrupt still applies
            pass

    try:
        await messenger.start()
        await scheduler.start()
        logger.info("Scheduler started. Monitoring until stopped...")
        await stop_event.wait()
        logger.info("Application shutdown requested.")
    except asyncio.CancelledError:
        logger.info("Application shutdown requested.")
    finally:
        logger.info("Shutting down resources...")
        await scheduler.close()
        await messenger.stop()
        await http_session.close()
        await db_pool.close()
        logger.info("Shutdown complete.")


def run() -> None:
    """Console script entry point."""
    try:
        # Parse command-line arguments and environment variables
        uptime_monitor_context: MonitoringContext = get_context()

        # Configure logging based on the context
        configure_logging(uptime_monitor_context)

        asyncio.run(main(uptime_monitor_context))
    except KeyboardInterrupt:
        logging.info("Shutdown initiated by user (Ctrl+C).")


if __name__ == "__main__":
    run()
