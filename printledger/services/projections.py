"""Chart and pie projections over reconciled page counts."""

import calendar
import re
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from printledger.models.device import Device
from printledger.schemas.analytics import ChartPoint, ShareSlice
from printledger.services.aggregation import summarize
from printledger.services.pricing import round_percent
from printledger.services.reconcile import reconcile_many

_MONTH_TOKEN = re.compile(r"^(\d{4})-(\d{2})$")
SHARE_METRICS = ("count", "effective_count", "revenue", "profit")


def parse_bucket(token: str) -> tuple[str, date, date]:
    """Turn ``YYYY-MM-DD`` or ``YYYY-MM`` into (label, first day, last day).

    A day is labelled ``MM-DD``; a month token covers the whole calendar
    month and keeps its ``YYYY-MM`` label.
    """
    match = _MONTH_TOKEN.match(token)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month token '{token}'")
        last = calendar.monthrange(year, month)[1]
        return token, date(year, month, 1), date(year, month, last)
    try:
        day = date.fromisoformat(token)
    except ValueError as exc:
        raise ValueError(f"Invalid date token '{token}'") from exc
    return day.strftime("%m-%d"), day, day


def recent_days(today: date, days: int) -> list[str]:
    """ISO tokens for the ``days`` calendar days ending today, oldest first."""
    if days < 1:
        raise ValueError("days must be at least 1")
    return [(today - timedelta(days=i)).isoformat() for i in range(days - 1, -1, -1)]


def time_series(db: Session, tokens: list[str]) -> list[ChartPoint]:
    """Pages per bucket, in total and per device.

    A month bucket collapses to one point: the sum of that month's deltas,
    i.e. the end-of-month counter minus the baseline before the month.
    """
    if not tokens:
        return []
    buckets = [parse_bucket(token) for token in tokens]
    start_date = min(b[1] for b in buckets)
    end_date = max(b[2] for b in buckets)

    deltas = reconcile_many(db, start_date, end_date)
    devices = db.query(Device).order_by(Device.display_name).all()
    shown = [d for d in devices if d.is_active or d.id in deltas]

    per_day: dict[int, dict[date, int]] = defaultdict(dict)
    for device_id, device_deltas in deltas.items():
        for d in device_deltas:
            per_day[device_id][d.reading_date] = d.delta

    points: list[ChartPoint] = []
    for label, first, last in buckets:
        per_device = {
            device.display_name: sum(
                count for day, count in per_day[device.id].items() if first <= day <= last
            )
            for device in shown
        }
        points.append(
            ChartPoint(date_label=label, total=sum(per_device.values()), per_device=per_device)
        )
    return points


def share_breakdown(
    db: Session,
    start_date: date,
    end_date: date,
    metric: str = "count",
) -> list[ShareSlice]:
    """Each device's share of a period total, largest first.

    Devices whose value is zero or negative are left out of the breakdown.
    """
    if metric not in SHARE_METRICS:
        raise ValueError(f"Unknown metric '{metric}', expected one of {SHARE_METRICS}")

    summary = summarize(db, start_date, end_date)
    values = [
        (row.device_id, row.display_name, Decimal(getattr(row, metric)))
        for row in summary.devices
    ]
    values = [v for v in values if v[2] > 0]
    total = sum((v[2] for v in values), Decimal("0"))

    slices = [
        ShareSlice(
            device_id=device_id,
            device_name=name,
            value=value,
            percentage=round_percent(value / total * 100) if total else Decimal("0.0"),
        )
        for device_id, name, value in values
    ]
    return sorted(slices, key=lambda s: s.value, reverse=True)
