"""Manual revenue entries and scalar settings."""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from printledger.core.database import Base


class ManualRevenueEntry(Base):
    """Income or expense not tied to any device (binding, scanning, supplies)."""

    __tablename__ = "manual_revenue_entries"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    entry_date: Mapped[date] = mapped_column(index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2))
    cost: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2), default=Decimal("0")
    )
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    operator: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))


class AppSetting(Base):
    """Key/value store for scalar settings such as the monthly rent."""

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[str] = mapped_column(String(255))
