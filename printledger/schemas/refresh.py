"""Refresh result schemas."""

from datetime import date

from pydantic import BaseModel

from printledger.models.enums import DeviceStatus, FetchFailure


class RefreshResult(BaseModel):
    """Outcome of polling one device."""

    device_id: int
    display_name: str
    success: bool
    status: DeviceStatus
    reading_date: date
    counter: int | None = None
    delta: int | None = None
    error_kind: FetchFailure | None = None
    error: str | None = None
