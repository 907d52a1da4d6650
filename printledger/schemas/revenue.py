"""Manual revenue and settings schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ManualRevenueCreate(BaseModel):
    """Schema for recording income or expense outside the printers."""

    entry_date: date
    amount: Decimal = Decimal("0")
    cost: Decimal = Field(default=Decimal("0"), ge=0)
    description: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=50)
    operator: str | None = Field(default=None, max_length=100)


class ManualRevenueResponse(BaseModel):
    """Schema for manual revenue entry response."""

    id: int
    entry_date: date
    amount: Decimal
    cost: Decimal
    description: str | None
    category: str | None
    operator: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class MonthlyRentSetting(BaseModel):
    """The fixed monthly cost applied by rent-aware aggregations."""

    monthly_rent: Decimal = Field(ge=0)
