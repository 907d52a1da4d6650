"""Analytics schemas: period summaries, comparisons and chart projections."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from printledger.models.enums import RentMode


class DeviceBreakdown(BaseModel):
    """One device's share of a period."""

    device_id: int
    display_name: str
    count: int
    waste_count: int
    effective_count: int
    revenue: Decimal
    cost: Decimal
    profit: Decimal


class PeriodSummary(BaseModel):
    """Totals for a date range; money rounded to cents."""

    start_date: date
    end_date: date
    rent_mode: RentMode
    total_count: int
    effective_count: int
    waste_count: int
    device_revenue: Decimal
    device_cost: Decimal
    manual_revenue: Decimal
    manual_cost: Decimal
    fixed_cost: Decimal
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal
    devices: list[DeviceBreakdown]


class MetricComparison(BaseModel):
    """A figure against its baseline.

    ``has_baseline`` is false when no comparable baseline exists; change and
    change_percent are then 0.
    """

    current: Decimal
    previous: Decimal
    change: Decimal
    change_percent: Decimal
    has_baseline: bool = True
    baseline_date: date | None = None


class PeriodComparison(BaseModel):
    """Two period summaries compared on one metric."""

    metric: str
    current: PeriodSummary
    previous: PeriodSummary
    change: Decimal
    change_percent: Decimal


class ComparisonOverview(BaseModel):
    """Day, week and month over their previous periods, in pages."""

    device_id: int | None
    day_over_day: MetricComparison
    week_over_week: MetricComparison
    month_over_month: MetricComparison


class DashboardStats(BaseModel):
    """Headline figures for the dashboard."""

    today: date
    today_total: int
    today_change_percent: Decimal
    today_has_baseline: bool
    month_revenue: Decimal
    month_cost: Decimal
    month_profit: Decimal
    month_change_percent: Decimal


class BreakEvenAnalysis(BaseModel):
    """Pages needed for profit to cover fixed cost and waste losses."""

    start_date: date
    end_date: date
    effective_pages: int
    revenue: Decimal
    physical_cost: Decimal
    fixed_cost: Decimal
    waste_loss: Decimal
    avg_profit_per_page: Decimal
    break_even_pages: int | None
    progress_percent: Decimal


class DeviceDayRevenue(BaseModel):
    """One device on one day of the monthly revenue sheet."""

    device_id: int
    display_name: str
    count: int
    waste_count: int
    revenue: Decimal
    cost: Decimal
    profit: Decimal


class DailyRevenueRow(BaseModel):
    """One calendar day of the monthly revenue sheet."""

    date: date
    devices: list[DeviceDayRevenue]
    other_income: Decimal
    other_cost: Decimal
    other_income_note: str
    rent: Decimal
    total_revenue: Decimal
    net_profit: Decimal


class ChartPoint(BaseModel):
    """One point of the page-count time series."""

    date_label: str
    total: int
    per_device: dict[str, int]


class ShareSlice(BaseModel):
    """One device's share of a total."""

    device_id: int
    device_name: str
    value: Decimal
    percentage: Decimal
