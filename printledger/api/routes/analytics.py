"""Analytics routes: summaries, comparisons, break-even and chart data."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from printledger.core.database import get_db
from printledger.models.enums import RentMode
from printledger.schemas.analytics import (
    BreakEvenAnalysis,
    ChartPoint,
    ComparisonOverview,
    DailyRevenueRow,
    DashboardStats,
    PeriodComparison,
    PeriodSummary,
    ShareSlice,
)
from printledger.services import aggregation, projections

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/summary", response_model=PeriodSummary)
def get_summary(
    start_date: date = Query(..., description="First day of the period"),
    end_date: date = Query(..., description="Last day of the period"),
    device_id: list[int] | None = Query(None, description="Restrict to these devices"),
    rent_mode: RentMode = Query(RentMode.NONE, description="How rent is charged"),
    db: Session = Depends(get_db),
) -> PeriodSummary:
    """Counts, revenue, cost and profit over a period."""
    try:
        return aggregation.summarize(db, start_date, end_date, device_id, rent_mode)
    except ValueError as exc:
        raise _bad_request(exc) from exc


@router.get("/compare", response_model=PeriodComparison)
def compare_periods(
    start_date: date = Query(...),
    end_date: date = Query(...),
    baseline_start: date = Query(...),
    baseline_end: date = Query(...),
    metric: str = Query("revenue", description="count, effective_count, revenue, cost or profit"),
    rent_mode: RentMode = Query(RentMode.NONE),
    db: Session = Depends(get_db),
) -> PeriodComparison:
    """Compare a period against a baseline period."""
    try:
        return aggregation.compare(
            db,
            (start_date, end_date),
            (baseline_start, baseline_end),
            metric=metric,
            rent_mode=rent_mode,
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc


@router.get("/break-even", response_model=BreakEvenAnalysis)
def get_break_even(
    start_date: date = Query(...),
    end_date: date = Query(...),
    rent_mode: RentMode = Query(RentMode.MONTH),
    db: Session = Depends(get_db),
) -> BreakEvenAnalysis:
    """Billable pages needed to cover rent and waste losses."""
    try:
        return aggregation.break_even(db, start_date, end_date, rent_mode)
    except ValueError as exc:
        raise _bad_request(exc) from exc


@router.get("/dashboard", response_model=DashboardStats)
def get_dashboard(
    today: date | None = Query(None, description="Defaults to the current date"),
    db: Session = Depends(get_db),
) -> DashboardStats:
    """Headline dashboard figures."""
    return aggregation.dashboard_stats(db, today or date.today())


@router.get("/comparison", response_model=ComparisonOverview)
def get_comparison(
    today: date | None = Query(None),
    device_id: int | None = Query(None),
    db: Session = Depends(get_db),
) -> ComparisonOverview:
    """Day, week and month page counts against the previous period."""
    return aggregation.comparison_overview(db, today or date.today(), device_id)


@router.get("/monthly/{year}/{month}", response_model=list[DailyRevenueRow])
def get_monthly_revenue(
    year: int,
    month: int,
    db: Session = Depends(get_db),
) -> list[DailyRevenueRow]:
    """Day-by-day revenue sheet for a month."""
    if not 1 <= month <= 12:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month")
    return aggregation.monthly_revenue(db, year, month)


@router.get("/chart", response_model=list[ChartPoint])
def get_chart(
    dates: list[str] | None = Query(None, description="YYYY-MM-DD or YYYY-MM tokens"),
    days: int = Query(7, ge=1, le=366, description="Used when no dates are given"),
    today: date | None = Query(None),
    db: Session = Depends(get_db),
) -> list[ChartPoint]:
    """Page counts per day or month, in total and per device."""
    tokens = dates or projections.recent_days(today or date.today(), days)
    try:
        return projections.time_series(db, tokens)
    except ValueError as exc:
        raise _bad_request(exc) from exc


@router.get("/share", response_model=list[ShareSlice])
def get_share(
    start_date: date = Query(...),
    end_date: date = Query(...),
    metric: str = Query("count", description="count, effective_count, revenue or profit"),
    db: Session = Depends(get_db),
) -> list[ShareSlice]:
    """Each device's share of the period, largest first."""
    try:
        return projections.share_breakdown(db, start_date, end_date, metric)
    except ValueError as exc:
        raise _bad_request(exc) from exc
