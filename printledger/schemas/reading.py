"""Counter reading schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class ReadingUpsert(BaseModel):
    """Schema for recording (or overwriting) the counter for a device and day."""

    device_id: int
    reading_date: date
    cumulative_counter: int = Field(ge=0)
    captured_at: datetime | None = None


class ReadingResponse(BaseModel):
    """Schema for counter reading response."""

    id: int
    device_id: int
    reading_date: date
    cumulative_counter: int
    captured_at: datetime

    model_config = {"from_attributes": True}


class DailyDeltaResponse(BaseModel):
    """Page count attributed to one day with a reading."""

    reading_date: date
    cumulative_counter: int
    delta: int
    counter_reset: bool = False


class DeviceDeltaHistory(BaseModel):
    """Reconciled deltas for a device over a date range."""

    device_id: int
    start_date: date
    end_date: date
    deltas: list[DailyDeltaResponse]
    total: int
