"""Enum definitions for devices and fetch outcomes."""

from enum import Enum


class PrinterClass(str, Enum):
    """Mono vs color printer classification."""

    MONO = "mono"
    COLOR = "color"


class DeviceStatus(str, Enum):
    """Lifecycle status, updated as a side effect of each refresh."""

    ONLINE = "online"
    OFFLINE = "offline"
    ERROR = "error"


class FetchFailure(str, Enum):
    """Ways a counter fetch can fail."""

    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    RESOLVE_FAILURE = "resolve_failure"
    HTTP_ERROR = "http_error"
    PARSE_FAILURE = "parse_failure"

    def device_status(self) -> DeviceStatus:
        """Map a failure kind to the status the device should take."""
        if self in (
            FetchFailure.CONNECTION_REFUSED,
            FetchFailure.TIMEOUT,
            FetchFailure.RESOLVE_FAILURE,
        ):
            return DeviceStatus.OFFLINE
        return DeviceStatus.ERROR


class RentMode(str, Enum):
    """How monthly rent is charged against a period."""

    NONE = "none"
    MONTH = "month"  # Full rent once per calendar month touched
    PRORATED = "prorated"  # rent / days_in_month per day in the period
