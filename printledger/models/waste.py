"""Waste ledger database models."""

from datetime import UTC, date, datetime

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from printledger.core.database import Base


class WasteEntry(Base):
    """Itemized record of pages produced but not billable."""

    __tablename__ = "waste_entries"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    device_id: Mapped[int] = mapped_column(ForeignKey("devices.id"), index=True)
    waste_date: Mapped[date] = mapped_column(index=True)
    waste_count: Mapped[int]
    note: Mapped[str | None] = mapped_column(String(255), nullable=True)
    operator: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))


class WasteSummary(Base):
    """Sum of waste entries for a (device, date); present only when positive."""

    __tablename__ = "waste_summaries"
    __table_args__ = (
        UniqueConstraint("device_id", "waste_date", name="uq_device_waste_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    device_id: Mapped[int] = mapped_column(ForeignKey("devices.id"), index=True)
    waste_date: Mapped[date] = mapped_column(index=True)
    waste_count: Mapped[int]
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
