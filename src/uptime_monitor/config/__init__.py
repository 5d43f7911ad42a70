"""
Configuration module for the uptime monitoring engine.

This module provides functionality to parse command-line arguments and environment
variables to create a configuration context for the engine. It defines
default values and help text for all configurable parameters.
"""

import argparse
import os
from typing import Any, List, Optional
from uuid import uuid4

from uptime_monitor.config.constants import (
    DEFAULT_DB_POOL_SIZE,
    DEFAULT_DSN,
    DEFAULT_GATEWAY_TOKEN,
    DEFAULT_GATEWAY_URL,
    DEFAULT_INSTANCE_ID_PREFIX,
    DEFAULT_LOGGING_CONFIG_FILE,
    DEFAULT_LOGGING_TYPE,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_RETENTION_DAYS,
    DEFAULT_RETENTION_PERIOD_HOURS,
    DEFAULT_TIMEZONE,
    DEFAULT_USER_AGENT,
)
from uptime_monitor.config.monitoring_context import MonitoringContext


def get_context(argv: Optional[List[str]] = None) -> MonitoringContext:
    """
    Parse command-line arguments and environment variables to create a configuration context.

    This function creates an argument parser with options for all configurable aspects
    of the engine. For each option, it first checks for a command-line argument,
    then falls back to an environment variable, and finally uses a default value.

    Args:
        argv: Arguments to parse instead of sys.argv, mainly for tests.

    Returns:
        MonitoringContext: A configuration context object containing all parsed settings.
    """
    parser = argparse.ArgumentParser(
        description="Probes monitored sites, tracks incidents and sends availability alerts."
    )

    parser.add_argument(
        "-dsn",
        type=str,
        default=os.getenv("UPTIME_MONITOR_DSN", DEFAULT_DSN),
        help="Specifies the DSN (connection string) for the PostgreSQL database.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_DSN environment variable.\n"
        f"If that is also absent, a default value for a local database is used: {DEFAULT_DSN}",
    )

    parser.add_argument(
        "-iid",
        "--instance-id",
        type=str,
        default=os.getenv("UPTIME_MONITOR_INSTANCE_ID", f"{DEFAULT_INSTANCE_ID_PREFIX}{uuid4()}"),
        help="Specifies the identifier stamped on every log record of this instance.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_INSTANCE_ID environment variable.\n"
        f"If that is also absent, the default value will be {DEFAULT_INSTANCE_ID_PREFIX}uuid4().",
    )

    parser.add_argument(
        "-ps",
        "--db-pool-size",
        type=int,
        default=int(os.getenv("UPTIME_MONITOR_DB_POOL_SIZE", DEFAULT_DB_POOL_SIZE)),
        help="Specifies the maximum number of connections in the database connection pool.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_DB_POOL_SIZE environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_DB_POOL_SIZE} is used.",
    )

    parser.add_argument(
        "-lt",
        "--logging-type",
        type=str,
        default=os.getenv("UPTIME_MONITOR_LOGGING_TYPE", DEFAULT_LOGGING_TYPE),
        help="Specifies the logging configuration type to use.\n"
        "Allowed values: dev, prod, custom (case insensitive).\n"
        "For 'dev' and 'prod', system will use built-in configurations.\n"
        "For 'custom', the --logging-config-file argument is required.",
    )

    parser.add_argument(
        "-lcf",
        "--logging-config-file",
        type=str,
        default=os.getenv("UPTIME_MONITOR_LOGGING_CONFIG_FILE", DEFAULT_LOGGING_CONFIG_FILE),
        help="Path to custom logging configuration file.\n"
        "Required when --logging-type is set to 'custom'.",
    )

    parser.add_argument(
        "-pt",
        "--probe-timeout",
        type=int,
        default=int(os.getenv("UPTIME_MONITOR_PROBE_TIMEOUT", DEFAULT_PROBE_TIMEOUT)),
        help="Specifies the hard timeout in seconds of a single probe.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_PROBE_TIMEOUT environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_PROBE_TIMEOUT} seconds is used.",
    )

    parser.add_argument(
        "-ua",
        "--user-agent",
        type=str,
        default=os.getenv("UPTIME_MONITOR_USER_AGENT", DEFAULT_USER_AGENT),
        help="Specifies the User-Agent header sent with every probe.\n"
        f"If not provided, the UPTIME_MONITOR_USER_AGENT environment variable or {DEFAULT_USER_AGENT} is used.",
    )

    parser.add_argument(
        "-rd",
        "--retention-days",
        type=int,
        default=int(os.getenv("UPTIME_MONITOR_RETENTION_DAYS", DEFAULT_RETENTION_DAYS)),
        help="Specifies how many days of checks are kept.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_RETENTION_DAYS environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_RETENTION_DAYS} days is used.",
    )

    parser.add_argument(
        "-rp",
        "--retention-period-hours",
        type=int,
        default=int(
            os.getenv("UPTIME_MONITOR_RETENTION_PERIOD_HOURS", DEFAULT_RETENTION_PERIOD_HOURS)
        ),
        help="Specifies the hours between two runs of the retention job.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_RETENTION_PERIOD_HOURS environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_RETENTION_PERIOD_HOURS} hours is used.",
    )

    parser.add_argument(
        "-tz",
        "--timezone",
        type=str,
        default=os.getenv("UPTIME_MONITOR_TIMEZONE", DEFAULT_TIMEZONE),
        help="Specifies the IANA timezone used to render the time in alerts.\n"
        f"If not provided, the UPTIME_MONITOR_TIMEZONE environment variable or {DEFAULT_TIMEZONE} is used.",
    )

    parser.add_argument(
        "-gu",
        "--gateway-url",
        type=str,
        default=os.getenv("UPTIME_MONITOR_GATEWAY_URL", DEFAULT_GATEWAY_URL),
        help="Specifies the base URL of the messaging gateway.\n"
        f"If not provided, the UPTIME_MONITOR_GATEWAY_URL environment variable or {DEFAULT_GATEWAY_URL} is used.",
    )

    parser.add_argument(
        "-gt",
        "--gateway-token",
        type=str,
        default=os.getenv("UPTIME_MONITOR_GATEWAY_TOKEN", DEFAULT_GATEWAY_TOKEN),
        help="Specifies the bearer token sent to the messaging gateway.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_GATEWAY_TOKEN environment variable.",
    )

    # Parse the command-line arguments
    args: Any = parser.parse_args(argv)

    return MonitoringContext(
        dsn=args.dsn,
        instance_id=args.instance_id,
        logging_type=args.logging_type,
        logging_config_file=args.logging_config_file,
        db_pool_size=args.db_pool_size,
        probe_timeout=args.probe_timeout,
        user_agent=args.user_agent,
        retention_days=args.retention_days,
        retention_period_hours=args.retention_period_hours,
        timezone=args.timezone,
        gateway_url=args.gateway_url,
        gateway_token=args.gateway_token,
    )
