"""
Configuration context for the uptime monitoring engine.

This module defines a data structure that holds all configuration parameters
of the engine. It serves as a central point for passing configuration
throughout the application.
"""

from typing import NamedTuple


class MonitoringContext(NamedTuple):
    """
    A data structure containing all configuration parameters of the engine.

    This class is immutable and provides a type-safe way to pass configuration
    throughout the application. It is created by parsing command-line arguments
    and environment variables.

    Attributes:
        dsn: Database connection string for PostgreSQL.
        instance_id: Unique identifier for this engine instance, stamped on log records.
        logging_type: Type of logging configuration to use (dev, prod, or custom).
        logging_config_file: Path to custom logging configuration file (if logging_type is 'custom').
        db_pool_size: Maximum number of connections in the database connection pool.
        probe_timeout: Hard timeout in seconds for a single probe.
        user_agent: User-Agent header sent with every probe.
        retention_days: Age in days after which checks are deleted.
        retention_period_hours: Hours between two runs of the retention job.
        timezone: IANA timezone used to render the time in alerts.
        gateway_url: Base URL of the messaging gateway.
        gateway_token: Bearer token for the messaging gateway, empty for none.
    """

    dsn: str
    instance_id: str
    logging_type: str
    logging_config_file: str
    db_pool_size: int
    probe_timeout: int
    user_agent: str
    retention_days: int
    retention_period_hours: int
    timezone: str
    gateway_url: str
    gateway_token: str
