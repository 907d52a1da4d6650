"""Device Pydantic schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from printledger.models.enums import DeviceStatus, PrinterClass
from printledger.services.pricing import FormulaError, validate_formula


def _check_formula(v: str | None) -> str | None:
    """Reject formulas that can never evaluate; blank means no formula."""
    if v is None or not v.strip():
        return None
    try:
        validate_formula(v)
    except FormulaError as exc:
        raise ValueError(str(exc)) from exc
    return v.strip()


_HTTP_URL = TypeAdapter(AnyHttpUrl)


def _check_target_url(v: str | None) -> str | None:
    """Accept only http(s) URLs that httpx can request; blank means none."""
    if v is None or not v.strip():
        return None
    try:
        _HTTP_URL.validate_python(v.strip())
    except ValidationError as exc:
        raise ValueError(f"Invalid target URL: {exc.errors()[0]['msg']}") from exc
    return v.strip()


class DeviceBase(BaseModel):
    """Base device schema."""

    display_name: str = Field(min_length=1, max_length=100)
    printer_class: PrinterClass = PrinterClass.MONO
    target_url: str | None = None


class DeviceCreate(DeviceBase):
    """Schema for registering a new device with its pricing rule."""

    cost_per_page: Decimal = Field(default=Decimal("0"), ge=0)
    price_per_page: Decimal = Field(default=Decimal("0"), ge=0)
    cost_formula: str | None = None
    revenue_formula: str | None = None

    @field_validator("cost_formula", "revenue_formula")
    @classmethod
    def validate_formulas(cls, v: str | None) -> str | None:
        """Validate formula syntax if provided."""
        return _check_formula(v)

    @field_validator("target_url")
    @classmethod
    def validate_target_url(cls, v: str | None) -> str | None:
        return _check_target_url(v)


class DeviceUpdate(BaseModel):
    """Schema for updating a device."""

    display_name: str | None = Field(default=None, min_length=1, max_length=100)
    printer_class: PrinterClass | None = None
    target_url: str | None = None
    cost_per_page: Decimal | None = Field(default=None, ge=0)
    price_per_page: Decimal | None = Field(default=None, ge=0)
    cost_formula: str | None = None
    revenue_formula: str | None = None
    is_active: bool | None = None

    @field_validator("cost_formula", "revenue_formula")
    @classmethod
    def validate_formulas(cls, v: str | None) -> str | None:
        """Validate formula syntax if provided; a blank string clears it."""
        return _check_formula(v)

    @field_validator("target_url")
    @classmethod
    def validate_target_url(cls, v: str | None) -> str | None:
        """A blank string clears the URL."""
        return _check_target_url(v)

    @model_validator(mode="after")
    def check_at_least_one_field(self) -> "DeviceUpdate":
        """Ensure at least one field is provided for update."""
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class DeviceResponse(DeviceBase):
    """Schema for device response."""

    id: int
    cost_per_page: Decimal
    price_per_page: Decimal
    cost_formula: str | None
    revenue_formula: str | None
    status: DeviceStatus
    last_updated: datetime | None
    last_error: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
