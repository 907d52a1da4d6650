"""Waste ledger schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class WasteEntryCreate(BaseModel):
    """Schema for logging wasted pages on a device and day."""

    device_id: int
    waste_date: date
    waste_count: int = Field(gt=0)
    note: str | None = Field(default=None, max_length=255)
    operator: str | None = Field(default=None, max_length=100)


class WasteSummarySet(BaseModel):
    """Schema for replacing the waste total of a device and day."""

    waste_count: int = Field(ge=0)
    operator: str | None = None


class WasteEntryResponse(BaseModel):
    """Schema for waste entry response."""

    id: int
    device_id: int
    waste_date: date
    waste_count: int
    note: str | None
    operator: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class WasteDayResponse(BaseModel):
    """All entries for a device and day with their total."""

    device_id: int
    waste_date: date
    entries: list[WasteEntryResponse]
    total: int
