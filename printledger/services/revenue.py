"""Manual revenue entries: income and expenses not tied to a device."""

import calendar
from datetime import date
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from printledger.models.revenue import ManualRevenueEntry
from printledger.schemas.revenue import ManualRevenueCreate


def create_entry(db: Session, data: ManualRevenueCreate) -> ManualRevenueEntry:
    """Record a manual revenue entry."""
    entry = ManualRevenueEntry(**data.model_dump())
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def delete_entry(db: Session, entry_id: int) -> None:
    """Delete a manual revenue entry."""
    entry = db.query(ManualRevenueEntry).filter(ManualRevenueEntry.id == entry_id).first()
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Revenue entry not found",
        )
    db.delete(entry)
    db.commit()


def get_entries(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[ManualRevenueEntry]:
    """Entries in an optional date window, newest first."""
    query = db.query(ManualRevenueEntry)
    if start_date:
        query = query.filter(ManualRevenueEntry.entry_date >= start_date)
    if end_date:
        query = query.filter(ManualRevenueEntry.entry_date <= end_date)
    return query.order_by(ManualRevenueEntry.entry_date.desc(), ManualRevenueEntry.id).all()


def get_entries_for_month(db: Session, year: int, month: int) -> list[ManualRevenueEntry]:
    """Entries for one calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return get_entries(db, date(year, month, 1), date(year, month, last_day))


def totals_by_date(
    db: Session,
    start_date: date,
    end_date: date,
) -> dict[date, tuple[Decimal, Decimal]]:
    """(amount, cost) sums per day in a date window."""
    totals: dict[date, tuple[Decimal, Decimal]] = {}
    for entry in get_entries(db, start_date, end_date):
        amount, cost = totals.get(entry.entry_date, (Decimal("0"), Decimal("0")))
        totals[entry.entry_date] = (amount + entry.amount, cost + entry.cost)
    return totals
