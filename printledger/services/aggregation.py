"""Aggregation engine: period summaries, comparisons and break-even.

Every figure here is recomputed on demand from stored readings, waste
summaries, the devices' current pricing rules, manual revenue entries and the
monthly rent. Per device and day:

    physical  = reconciled delta
    effective = max(0, physical - waste)
    revenue   = price(effective)   # only billable pages earn
    cost      = price(physical)    # every page produced consumes supplies

Sums are kept unrounded and rounded once when a result is built.
"""

import calendar
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy.orm import Session

from printledger.core.config import settings
from printledger.models.device import Device
from printledger.models.enums import RentMode
from printledger.schemas.analytics import (
    BreakEvenAnalysis,
    ComparisonOverview,
    DailyRevenueRow,
    DashboardStats,
    DeviceBreakdown,
    DeviceDayRevenue,
    MetricComparison,
    PeriodComparison,
    PeriodSummary,
)
from printledger.services.pricing import (
    percent_change,
    price,
    price_split,
    round_money,
    round_percent,
)
from printledger.services.readings import find_reading_date_on_or_before
from printledger.services.reconcile import check_range, reconcile_many
from printledger.services.revenue import get_entries_for_month, totals_by_date
from printledger.services.settings import get_monthly_rent
from printledger.services.waste import summaries_in_range

logger = structlog.get_logger()

ZERO = Decimal("0")
COMPARISON_METRICS = ("count", "effective_count", "revenue", "cost", "profit")


def _effective_pages(physical: int, waste: int) -> int:
    """Billable pages; waste beyond the day's output cannot go below zero."""
    return max(0, physical - waste)


@dataclass(frozen=True)
class PricedDay:
    """Unrounded figures for one device on one day."""

    device: Device
    day: date
    physical: int
    waste: int
    effective: int
    revenue: Decimal
    cost: Decimal

    @classmethod
    def build(cls, device: Device, day: date, physical: int, waste: int) -> "PricedDay":
        effective = _effective_pages(physical, waste)
        quote = price_split(device, physical, effective)
        return cls(
            device=device,
            day=day,
            physical=physical,
            waste=waste,
            effective=effective,
            revenue=quote.revenue,
            cost=quote.cost,
        )

    @classmethod
    def idle(cls, device: Device, day: date) -> "PricedDay":
        """A day without readings or waste."""
        return cls(device, day, 0, 0, 0, ZERO, ZERO)

    @property
    def device_id(self) -> int:
        return self.device.id

    @property
    def waste_loss(self) -> Decimal:
        """Revenue forgone on the pages written off this day."""
        written_off = self.physical - self.effective
        if written_off <= 0:
            return ZERO
        return price(self.device, self.physical).revenue - self.revenue


def load_device_days(
    db: Session,
    start_date: date,
    end_date: date,
    device_ids: list[int] | None = None,
) -> tuple[dict[int, Device], list[PricedDay]]:
    """Price every device-day in a range.

    Days come from reconciled deltas plus any day with recorded waste.
    Rows that reference an unknown device are skipped and logged.
    """
    check_range(start_date, end_date)

    query = db.query(Device)
    if device_ids is not None:
        query = query.filter(Device.id.in_(device_ids))
    devices = {d.id: d for d in query.all()}

    deltas = reconcile_many(db, start_date, end_date, device_ids)
    waste = summaries_in_range(db, start_date, end_date, device_ids)

    physical: dict[tuple[int, date], int] = {}
    for device_id, device_deltas in deltas.items():
        for d in device_deltas:
            physical[(device_id, d.reading_date)] = d.delta

    days: list[PricedDay] = []
    for key in sorted(set(physical) | set(waste)):
        device_id, day = key
        device = devices.get(device_id)
        if device is None:
            logger.warning("Skipping row for unknown device", device_id=device_id, day=str(day))
            continue
        days.append(PricedDay.build(device, day, physical.get(key, 0), waste.get(key, 0)))

    return devices, days


def _months_in_range(start_date: date, end_date: date):
    """Yield (year, month, days_in_month, days_covered) for each month slice."""
    current = start_date.replace(day=1)
    while current <= end_date:
        days_in_month = calendar.monthrange(current.year, current.month)[1]
        month_end = current.replace(day=days_in_month)
        slice_start = max(current, start_date)
        slice_end = min(month_end, end_date)
        yield current.year, current.month, days_in_month, (slice_end - slice_start).days + 1
        current = month_end + timedelta(days=1)


def fixed_cost_for(
    monthly_rent: Decimal,
    start_date: date,
    end_date: date,
    rent_mode: RentMode,
) -> Decimal:
    """Rent charged against a period.

    ``month`` charges the full rent once per calendar month the period
    touches; ``prorated`` charges ``rent / days_in_month`` for each day.
    """
    check_range(start_date, end_date)
    if rent_mode == RentMode.NONE:
        return ZERO

    total = ZERO
    for _, _, days_in_month, days_covered in _months_in_range(start_date, end_date):
        if rent_mode == RentMode.MONTH:
            total += monthly_rent
        else:
            total += monthly_rent / days_in_month * days_covered
    return total


def summarize(
    db: Session,
    start_date: date,
    end_date: date,
    device_ids: list[int] | None = None,
    rent_mode: RentMode = RentMode.NONE,
) -> PeriodSummary:
    """Fold deltas, waste, pricing, manual entries and rent over a period.

    Manual entries and rent are not attributable to a device, so they are
    included only when the summary covers all devices.
    """
    devices, days = load_device_days(db, start_date, end_date, device_ids)

    per_device: dict[int, dict] = defaultdict(
        lambda: {"count": 0, "waste": 0, "effective": 0, "revenue": ZERO, "cost": ZERO}
    )
    for row in days:
        acc = per_device[row.device_id]
        acc["count"] += row.physical
        acc["waste"] += row.waste
        acc["effective"] += row.effective
        acc["revenue"] += row.revenue
        acc["cost"] += row.cost

    device_revenue = sum((a["revenue"] for a in per_device.values()), ZERO)
    device_cost = sum((a["cost"] for a in per_device.values()), ZERO)

    manual_revenue = manual_cost = fixed_cost = ZERO
    if device_ids is None:
        for amount, cost in totals_by_date(db, start_date, end_date).values():
            manual_revenue += amount
            manual_cost += cost
        fixed_cost = fixed_cost_for(get_monthly_rent(db), start_date, end_date, rent_mode)

    total_revenue = device_revenue + manual_revenue
    total_cost = device_cost + manual_cost + fixed_cost

    breakdown = [
        DeviceBreakdown(
            device_id=device_id,
            display_name=devices[device_id].display_name,
            count=acc["count"],
            waste_count=acc["waste"],
            effective_count=acc["effective"],
            revenue=round_money(acc["revenue"]),
            cost=round_money(acc["cost"]),
            profit=round_money(acc["revenue"] - acc["cost"]),
        )
        for device_id, acc in sorted(
            per_device.items(), key=lambda item: devices[item[0]].display_name
        )
    ]

    return PeriodSummary(
        start_date=start_date,
        end_date=end_date,
        rent_mode=rent_mode if device_ids is None else RentMode.NONE,
        total_count=sum(a["count"] for a in per_device.values()),
        effective_count=sum(a["effective"] for a in per_device.values()),
        waste_count=sum(a["waste"] for a in per_device.values()),
        device_revenue=round_money(device_revenue),
        device_cost=round_money(device_cost),
        manual_revenue=round_money(manual_revenue),
        manual_cost=round_money(manual_cost),
        fixed_cost=round_money(fixed_cost),
        total_revenue=round_money(total_revenue),
        total_cost=round_money(total_cost),
        total_profit=round_money(total_revenue - total_cost),
        devices=breakdown,
    )


def _metric_value(summary: PeriodSummary, metric: str) -> Decimal:
    values = {
        "count": Decimal(summary.total_count),
        "effective_count": Decimal(summary.effective_count),
        "revenue": summary.total_revenue,
        "cost": summary.total_cost,
        "profit": summary.total_profit,
    }
    if metric not in values:
        raise ValueError(f"Unknown metric '{metric}', expected one of {COMPARISON_METRICS}")
    return values[metric]


def compare(
    db: Session,
    period: tuple[date, date],
    baseline: tuple[date, date],
    metric: str = "revenue",
    device_ids: list[int] | None = None,
    rent_mode: RentMode = RentMode.NONE,
) -> PeriodComparison:
    """Summarize two periods and compare them on one metric."""
    current = summarize(db, period[0], period[1], device_ids, rent_mode)
    previous = summarize(db, baseline[0], baseline[1], device_ids, rent_mode)
    current_value = _metric_value(current, metric)
    previous_value = _metric_value(previous, metric)
    return PeriodComparison(
        metric=metric,
        current=current,
        previous=previous,
        change=current_value - previous_value,
        change_percent=percent_change(current_value, previous_value),
    )


def _count_on(days: list[PricedDay], start_date: date, end_date: date) -> int:
    return sum(d.physical for d in days if start_date <= d.day <= end_date)


def _compare_counts(current: int, previous: int, baseline_date: date | None = None) -> MetricComparison:
    return MetricComparison(
        current=Decimal(current),
        previous=Decimal(previous),
        change=Decimal(current - previous),
        change_percent=percent_change(current, previous),
        baseline_date=baseline_date,
    )


def day_over_day(
    db: Session,
    day: date,
    device_id: int | None = None,
    days: list[PricedDay] | None = None,
) -> MetricComparison:
    """Pages on ``day`` against the nearest earlier day with a reading.

    The canonical baseline is the day before. When it has no reading the
    search goes back up to ``COMPARISON_LOOKBACK_DAYS``; past that the
    comparison has no baseline and reports no change.
    """
    lookback = settings.COMPARISON_LOOKBACK_DAYS
    earliest = day - timedelta(days=lookback)
    device_ids = [device_id] if device_id is not None else None
    if days is None:
        _, days = load_device_days(db, earliest, day, device_ids)

    current = _count_on(days, day, day)
    baseline_date = find_reading_date_on_or_before(
        db, day - timedelta(days=1), earliest, device_id
    )
    if baseline_date is None:
        return MetricComparison(
            current=Decimal(current),
            previous=ZERO,
            change=ZERO,
            change_percent=ZERO,
            has_baseline=False,
        )
    return _compare_counts(current, _count_on(days, baseline_date, baseline_date), baseline_date)


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _previous_month(day: date) -> tuple[date, date]:
    last_of_previous = _month_start(day) - timedelta(days=1)
    return last_of_previous.replace(day=1), last_of_previous


def _week_start(day: date) -> date:
    """Weeks start on Sunday."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def comparison_overview(
    db: Session,
    today: date,
    device_id: int | None = None,
) -> ComparisonOverview:
    """Day, week and month page counts against their previous periods."""
    last_month_start, last_month_end = _previous_month(today)
    this_week = _week_start(today)
    earliest = min(last_month_start, this_week - timedelta(days=7))
    earliest = min(earliest, today - timedelta(days=settings.COMPARISON_LOOKBACK_DAYS))
    device_ids = [device_id] if device_id is not None else None
    _, days = load_device_days(db, earliest, today, device_ids)

    return ComparisonOverview(
        device_id=device_id,
        day_over_day=day_over_day(db, today, device_id, days),
        week_over_week=_compare_counts(
            _count_on(days, this_week, today),
            _count_on(days, this_week - timedelta(days=7), this_week - timedelta(days=1)),
        ),
        month_over_month=_compare_counts(
            _count_on(days, _month_start(today), today),
            _count_on(days, last_month_start, last_month_end),
        ),
    )


def dashboard_stats(db: Session, today: date) -> DashboardStats:
    """Headline figures: today's pages and this month's money against last month."""
    daily = day_over_day(db, today)
    month = summarize(db, _month_start(today), today)
    last_month = summarize(db, *_previous_month(today))
    return DashboardStats(
        today=today,
        today_total=int(daily.current),
        today_change_percent=daily.change_percent,
        today_has_baseline=daily.has_baseline,
        month_revenue=month.device_revenue,
        month_cost=month.device_cost,
        month_profit=round_money(month.device_revenue - month.device_cost),
        month_change_percent=percent_change(month.device_revenue, last_month.device_revenue),
    )


def break_even(
    db: Session,
    start_date: date,
    end_date: date,
    rent_mode: RentMode = RentMode.MONTH,
) -> BreakEvenAnalysis:
    """How many billable pages cover fixed cost and waste losses.

    ``avg = (revenue - physical_cost) / effective_pages`` and
    ``break_even_pages = ceil((fixed_cost + waste_loss) / avg)``; when the
    average is not positive there is no break-even point.
    """
    _, days = load_device_days(db, start_date, end_date)
    effective = sum(d.effective for d in days)
    revenue = sum((d.revenue for d in days), ZERO)
    physical_cost = sum((d.cost for d in days), ZERO)
    waste_loss = sum((d.waste_loss for d in days), ZERO)
    fixed_cost = fixed_cost_for(get_monthly_rent(db), start_date, end_date, rent_mode)

    avg = (revenue - physical_cost) / effective if effective else ZERO
    break_even_pages: int | None = None
    progress = ZERO
    if avg > 0:
        break_even_pages = math.ceil((fixed_cost + waste_loss) / avg)
        if break_even_pages == 0:
            progress = Decimal("100")
        else:
            progress = min(Decimal(effective) / break_even_pages, Decimal("1")) * 100

    return BreakEvenAnalysis(
        start_date=start_date,
        end_date=end_date,
        effective_pages=effective,
        revenue=round_money(revenue),
        physical_cost=round_money(physical_cost),
        fixed_cost=round_money(fixed_cost),
        waste_loss=round_money(waste_loss),
        avg_profit_per_page=avg.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP),
        break_even_pages=break_even_pages,
        progress_percent=round_percent(progress),
    )


def monthly_revenue(db: Session, year: int, month: int) -> list[DailyRevenueRow]:
    """Day-by-day revenue sheet for a calendar month.

    Each day lists every device that is active or has figures that day, the
    manual income of the day and the day's share of the monthly rent.
    """
    days_in_month = calendar.monthrange(year, month)[1]
    start_date = date(year, month, 1)
    end_date = date(year, month, days_in_month)

    devices, days = load_device_days(db, start_date, end_date)
    by_day: dict[date, dict[int, PricedDay]] = defaultdict(dict)
    for row in days:
        by_day[row.day][row.device_id] = row

    manual = totals_by_date(db, start_date, end_date)
    notes: dict[date, list[str]] = defaultdict(list)
    for entry in get_entries_for_month(db, year, month):
        if entry.description:
            notes[entry.entry_date].append(entry.description)

    daily_rent = get_monthly_rent(db) / days_in_month
    listed = sorted(
        (d for d in devices.values() if d.is_active or any(d.id in r for r in by_day.values())),
        key=lambda d: d.display_name,
    )

    result: list[DailyRevenueRow] = []
    for offset in range(days_in_month):
        day = start_date + timedelta(days=offset)
        rows = by_day.get(day, {})
        device_rows = []
        revenue = cost = ZERO
        for device in listed:
            row = rows.get(device.id)
            if row is None:
                if not device.is_active:
                    continue
                row = PricedDay.idle(device, day)
            revenue += row.revenue
            cost += row.cost
            device_rows.append(
                DeviceDayRevenue(
                    device_id=device.id,
                    display_name=device.display_name,
                    count=row.physical,
                    waste_count=row.waste,
                    revenue=round_money(row.revenue),
                    cost=round_money(row.cost),
                    profit=round_money(row.revenue - row.cost),
                )
            )

        other_income, other_cost = manual.get(day, (ZERO, ZERO))
        result.append(
            DailyRevenueRow(
                date=day,
                devices=device_rows,
                other_income=round_money(other_income),
                other_cost=round_money(other_cost),
                other_income_note="; ".join(notes.get(day, [])),
                rent=round_money(daily_rent),
                total_revenue=round_money(revenue + other_income),
                net_profit=round_money(revenue - cost + other_income - other_cost - daily_rent),
            )
        )

    return result
