"""Delta reconciler: cumulative counters to daily page counts.

A device reports a lifetime counter. The pages printed on a day are the
difference between that day's counter and the counter of the most recent
earlier day that has a reading. Missing days are skipped rather than treated
as zero, so a multi-day gap is attributed in full to the next day with a
reading. The first reading ever seen only establishes the baseline.

A counter that goes backwards (hardware reset or rollover) yields a delta of
zero with ``counter_reset`` set, so resets are visible without ever producing
negative page counts.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from sqlalchemy.orm import Session

from printledger.services.readings import get_all_readings_until, get_readings_until


class CounterFact(Protocol):
    """A stored counter value for one day."""

    reading_date: date
    cumulative_counter: int


@dataclass(frozen=True)
class DailyDelta:
    """Pages attributed to a day that has a reading."""

    reading_date: date
    cumulative_counter: int
    delta: int
    counter_reset: bool = False


def check_range(start_date: date, end_date: date) -> None:
    """Reject inverted date ranges."""
    if end_date < start_date:
        raise ValueError(f"end_date {end_date} is before start_date {start_date}")


def reconcile_counters(
    readings: Iterable[CounterFact],
    start_date: date,
    end_date: date,
) -> list[DailyDelta]:
    """Fold one device's readings into deltas for days in ``[start_date, end_date]``.

    Readings before ``start_date`` are used only as the baseline for the first
    day in range; readings after ``end_date`` are ignored.
    """
    check_range(start_date, end_date)

    ordered = sorted(
        (r for r in readings if r.reading_date <= end_date),
        key=lambda r: r.reading_date,
    )

    deltas: list[DailyDelta] = []
    previous: int | None = None
    for reading in ordered:
        counter = reading.cumulative_counter
        if previous is not None and reading.reading_date >= start_date:
            raw = counter - previous
            deltas.append(
                DailyDelta(
                    reading_date=reading.reading_date,
                    cumulative_counter=counter,
                    delta=max(0, raw),
                    counter_reset=raw < 0,
                )
            )
        previous = counter

    return deltas


def reconcile(
    db: Session,
    device_id: int,
    start_date: date,
    end_date: date,
) -> list[DailyDelta]:
    """Reconcile the stored readings of one device over a date range."""
    check_range(start_date, end_date)
    return reconcile_counters(get_readings_until(db, device_id, end_date), start_date, end_date)


def reconcile_many(
    db: Session,
    start_date: date,
    end_date: date,
    device_ids: list[int] | None = None,
) -> dict[int, list[DailyDelta]]:
    """Reconcile every device (or the given ones) with a single range scan."""
    check_range(start_date, end_date)

    by_device: dict[int, list] = defaultdict(list)
    for reading in get_all_readings_until(db, end_date, device_ids):
        by_device[reading.device_id].append(reading)

    return {
        device_id: reconcile_counters(readings, start_date, end_date)
        for device_id, readings in by_device.items()
    }
