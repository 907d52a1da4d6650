"""CounterReading database model - the ground-truth ledger."""

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from printledger.core.database import Base

if TYPE_CHECKING:
    from printledger.models.device import Device


class CounterReading(Base):
    """One cumulative counter value per device per calendar day."""

    __tablename__ = "counter_readings"
    __table_args__ = (
        UniqueConstraint("device_id", "reading_date", name="uq_device_reading_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    device_id: Mapped[int] = mapped_column(ForeignKey("devices.id"), index=True)
    reading_date: Mapped[date] = mapped_column(index=True)
    cumulative_counter: Mapped[int] = mapped_column(BigInteger)
    captured_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Relationships
    device: Mapped["Device"] = relationship(back_populates="readings")
