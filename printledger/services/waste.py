"""Waste ledger: itemized non-billable pages with a derived daily summary."""

from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from printledger.models.waste import WasteEntry, WasteSummary
from printledger.services.device import get_device


def _recompute_summary(db: Session, device_id: int, waste_date: date) -> int:
    """Bring the summary row in line with the entries; drop it at zero."""
    total = (
        db.query(func.coalesce(func.sum(WasteEntry.waste_count), 0))
        .filter(
            WasteEntry.device_id == device_id,
            WasteEntry.waste_date == waste_date,
        )
        .scalar()
    )
    summary = (
        db.query(WasteSummary)
        .filter(
            WasteSummary.device_id == device_id,
            WasteSummary.waste_date == waste_date,
        )
        .first()
    )

    if total > 0:
        if summary:
            summary.waste_count = total
        else:
            db.add(WasteSummary(device_id=device_id, waste_date=waste_date, waste_count=total))
    elif summary:
        db.delete(summary)

    return total


def add_entry(
    db: Session,
    device_id: int,
    waste_date: date,
    waste_count: int,
    note: str | None = None,
    operator: str | None = None,
) -> WasteEntry:
    """Log wasted pages for a device and day."""
    if waste_count <= 0:
        raise ValueError("waste_count must be positive")
    get_device(db, device_id)

    entry = WasteEntry(
        device_id=device_id,
        waste_date=waste_date,
        waste_count=waste_count,
        note=note,
        operator=operator,
    )
    db.add(entry)
    db.flush()
    _recompute_summary(db, device_id, waste_date)
    db.commit()
    db.refresh(entry)
    return entry


def remove_entry(db: Session, entry_id: int) -> None:
    """Delete a waste entry and update the day's summary."""
    entry = db.query(WasteEntry).filter(WasteEntry.id == entry_id).first()
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Waste entry not found",
        )

    device_id, waste_date = entry.device_id, entry.waste_date
    db.delete(entry)
    db.flush()
    _recompute_summary(db, device_id, waste_date)
    db.commit()


def entries_for(db: Session, device_id: int, waste_date: date) -> list[WasteEntry]:
    """All waste entries for a device and day, oldest first."""
    return (
        db.query(WasteEntry)
        .filter(
            WasteEntry.device_id == device_id,
            WasteEntry.waste_date == waste_date,
        )
        .order_by(WasteEntry.created_at, WasteEntry.id)
        .all()
    )


def summary_for(db: Session, device_id: int, waste_date: date) -> int:
    """Total wasted pages for a device and day (0 when none recorded)."""
    summary = (
        db.query(WasteSummary)
        .filter(
            WasteSummary.device_id == device_id,
            WasteSummary.waste_date == waste_date,
        )
        .first()
    )
    return summary.waste_count if summary else 0


def set_summary(
    db: Session,
    device_id: int,
    waste_date: date,
    waste_count: int,
    operator: str | None = None,
) -> int:
    """Replace every entry for a device and day with a single total."""
    if waste_count < 0:
        raise ValueError("waste_count must not be negative")
    get_device(db, device_id)

    db.query(WasteEntry).filter(
        WasteEntry.device_id == device_id,
        WasteEntry.waste_date == waste_date,
    ).delete(synchronize_session=False)
    if waste_count > 0:
        db.add(
            WasteEntry(
                device_id=device_id,
                waste_date=waste_date,
                waste_count=waste_count,
                operator=operator,
            )
        )
    db.flush()
    total = _recompute_summary(db, device_id, waste_date)
    db.commit()
    return total


def summaries_in_range(
    db: Session,
    start_date: date,
    end_date: date,
    device_ids: list[int] | None = None,
) -> dict[tuple[int, date], int]:
    """Waste totals keyed by (device_id, date) for a date window."""
    query = db.query(WasteSummary).filter(
        WasteSummary.waste_date >= start_date,
        WasteSummary.waste_date <= end_date,
    )
    if device_ids is not None:
        query = query.filter(WasteSummary.device_id.in_(device_ids))
    return {(s.device_id, s.waste_date): s.waste_count for s in query.all()}
