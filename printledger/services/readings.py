"""Reading store: one cumulative counter per device per day."""

from datetime import UTC, date, datetime

from sqlalchemy.orm import Session

from printledger.models.reading import CounterReading
from printledger.services.device import get_device


def upsert_reading(
    db: Session,
    device_id: int,
    reading_date: date,
    cumulative_counter: int,
    captured_at: datetime | None = None,
) -> CounterReading:
    """Store the counter for a device and day; a later value for the same day wins."""
    get_device(db, device_id)
    captured_at = captured_at or datetime.now(UTC)

    reading = (
        db.query(CounterReading)
        .filter(
            CounterReading.device_id == device_id,
            CounterReading.reading_date == reading_date,
        )
        .first()
    )
    if reading:
        reading.cumulative_counter = cumulative_counter
        reading.captured_at = captured_at
    else:
        reading = CounterReading(
            device_id=device_id,
            reading_date=reading_date,
            cumulative_counter=cumulative_counter,
            captured_at=captured_at,
        )
        db.add(reading)

    db.commit()
    db.refresh(reading)
    return reading


def get_reading(db: Session, device_id: int, reading_date: date) -> CounterReading | None:
    """Get the reading stored for a device and day."""
    return (
        db.query(CounterReading)
        .filter(
            CounterReading.device_id == device_id,
            CounterReading.reading_date == reading_date,
        )
        .first()
    )


def get_readings_until(db: Session, device_id: int, end_date: date) -> list[CounterReading]:
    """All readings for a device up to ``end_date``, oldest first."""
    return (
        db.query(CounterReading)
        .filter(
            CounterReading.device_id == device_id,
            CounterReading.reading_date <= end_date,
        )
        .order_by(CounterReading.reading_date)
        .all()
    )


def get_all_readings_until(
    db: Session,
    end_date: date,
    device_ids: list[int] | None = None,
) -> list[CounterReading]:
    """Readings for many devices up to ``end_date`` in one scan."""
    query = db.query(CounterReading).filter(CounterReading.reading_date <= end_date)
    if device_ids is not None:
        query = query.filter(CounterReading.device_id.in_(device_ids))
    return query.order_by(CounterReading.device_id, CounterReading.reading_date).all()


def get_readings_history(
    db: Session,
    device_id: int,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[CounterReading], int]:
    """Get reading history for a device with pagination, newest first."""
    query = db.query(CounterReading).filter(CounterReading.device_id == device_id)
    total = query.count()
    readings = (
        query.order_by(CounterReading.reading_date.desc()).offset(offset).limit(limit).all()
    )
    return readings, total


def find_reading_date_on_or_before(
    db: Session,
    target: date,
    earliest: date,
    device_id: int | None = None,
) -> date | None:
    """Most recent date in ``[earliest, target]`` that has any reading."""
    query = db.query(CounterReading.reading_date).filter(
        CounterReading.reading_date <= target,
        CounterReading.reading_date >= earliest,
    )
    if device_id is not None:
        query = query.filter(CounterReading.device_id == device_id)
    row = query.order_by(CounterReading.reading_date.desc()).first()
    return row[0] if row else None
