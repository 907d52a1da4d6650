"""Device database model."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from printledger.core.database import Base
from printledger.models.enums import DeviceStatus, PrinterClass

if TYPE_CHECKING:
    from printledger.models.reading import CounterReading


class Device(Base):
    """A networked printer polled for its cumulative page counter.

    The pricing rule lives on the device itself: linear per-page rates plus
    optional formulas in terms of ``count``. Aggregations always price with
    the current rule.
    """

    __tablename__ = "devices"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    display_name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    printer_class: Mapped[PrinterClass] = mapped_column(
        String(10), default=PrinterClass.MONO
    )
    target_url: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Pricing rule
    cost_per_page: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=4), default=Decimal("0")
    )
    price_per_page: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=4), default=Decimal("0")
    )
    cost_formula: Mapped[str | None] = mapped_column(Text, nullable=True)
    revenue_formula: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Lifecycle
    status: Mapped[DeviceStatus] = mapped_column(
        String(10), default=DeviceStatus.OFFLINE, index=True
    )
    last_updated: Mapped[datetime | None] = mapped_column(nullable=True)
    last_error: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Relationships
    readings: Mapped[list["CounterReading"]] = relationship(
        back_populates="device", cascade="all, delete-orphan"
    )
