"""
Domain models for the uptime monitoring engine.

This module defines the core data structures used throughout the application:
monitored sites, recorded checks, incidents, normalized probe results and the
transition reported for every check. These models mirror the rows held by the
persistence layer and flow unchanged between the engine components.
"""

from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional


class SiteStatus(str, Enum):
    """
    The availability state of a site as last observed by the engine.

    Inheriting from 'str' allows enum members to be written to and read from
    the database as plain text.
    """

    UNKNOWN = "unknown"
    UP = "up"
    DOWN = "down"


class NotifyType(str, Enum):
    """Recipient kinds understood by the notifier."""

    PERSONAL = "personal"
    GROUP = "group"


class EventKind(str, Enum):
    """The two alert events the notifier can send."""

    DOWN = "down"
    UP = "up"


class TransitionKind(str, Enum):
    """What a single check changed for its site."""

    NONE = "none"
    WENT_DOWN = "went_down"
    CAME_UP = "came_up"


class Site(NamedTuple):
    """
    A monitored endpoint with its configuration and last known state.

    This data structure directly corresponds to the columns of the 'sites'
    table. Configuration fields are written by the admin interface; the
    status fields are written only by the scheduler after every check.

    Attributes:
        id: The unique identifier of the site in the database.
        name: Human readable name used in alerts.
        url: The URL probed with a GET request.
        check_interval: Seconds between the end of one check and the next.
        is_active: Whether the site is scheduled at all.
        last_status: Status recorded by the most recent check.
        last_response_ms: Latency recorded by the most recent check.
        last_checked_at: When the most recent check was recorded.
        down_template: Optional per-site override for the DOWN alert.
        up_template: Optional per-site override for the UP alert.
        notify_type: Recipient kind, 'group' or 'personal'.
        notify_target: Recipient identifier; empty disables alerts.
    """

    id: int
    name: str
    url: str
    check_interval: int
    is_active: bool = True
    last_status: SiteStatus = SiteStatus.UNKNOWN
    last_response_ms: Optional[int] = None
    last_checked_at: Optional[datetime] = None
    down_template: Optional[str] = None
    up_template: Optional[str] = None
    notify_type: str = NotifyType.PERSONAL.value
    notify_target: str = ""


class ProbeResult(NamedTuple):
    """
    The normalized outcome of one HTTP probe.

    Attributes:
        status: UP when the server answered below 400, DOWN otherwise.
        status_code: The HTTP status code, or None when no response arrived.
        response_time_ms: Milliseconds from request start to headers or failure.
        error_message: Why the probe is DOWN, or None when it is UP.
    """

    status: SiteStatus
    status_code: Optional[int]
    response_time_ms: int
    error_message: Optional[str]


class Check(NamedTuple):
    """An immutable, recorded probe outcome for one site."""

    id: int
    site_id: int
    status: SiteStatus
    status_code: Optional[int]
    response_time_ms: int
    error_message: Optional[str]
    checked_at: datetime


class Incident(NamedTuple):
    """
    One contiguous outage of a site.

    An incident is open while resolved_at is None. At most one incident per
    site may be open at any time.

    Attributes:
        id: The unique identifier of the incident.
        site_id: The site that went down.
        started_at: When the UP to DOWN transition was observed.
        resolved_at: When the DOWN to UP transition was observed.
        duration_seconds: Whole seconds between start and resolution.
        down_notified: Whether the DOWN alert was handed to the transport.
        up_notified: Whether the UP alert was handed to the transport.
    """

    id: int
    site_id: int
    started_at: datetime
    resolved_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    down_notified: bool = False
    up_notified: bool = False


class Transition(NamedTuple):
    """
    What the incident tracker decided for a single check.

    Attributes:
        kind: Whether the check opened, resolved or left incidents alone.
        checked_at: The timestamp written to the check and the site.
        incident: The incident that was opened or resolved, if any.
        downtime_seconds: The outage duration when an incident was resolved.
    """

    kind: TransitionKind
    checked_at: datetime
    incident: Optional[Incident] = None
    downtime_seconds: Optional[int] = None
