"""Manual revenue and rent setting routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from printledger.core.database import get_db
from printledger.schemas.revenue import (
    ManualRevenueCreate,
    ManualRevenueResponse,
    MonthlyRentSetting,
)
from printledger.services import revenue as revenue_service
from printledger.services.settings import get_monthly_rent, set_monthly_rent

router = APIRouter(prefix="/revenues", tags=["revenues"])


@router.post("/", response_model=ManualRevenueResponse, status_code=status.HTTP_201_CREATED)
def create_revenue_entry(
    data: ManualRevenueCreate,
    db: Session = Depends(get_db),
):
    """Record income or expense that is not tied to a printer."""
    return revenue_service.create_entry(db, data)


@router.get("/", response_model=list[ManualRevenueResponse])
def list_revenue_entries(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: Session = Depends(get_db),
):
    """List manual entries in an optional date window."""
    return revenue_service.get_entries(db, start_date, end_date)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_revenue_entry(
    entry_id: int,
    db: Session = Depends(get_db),
) -> None:
    """Delete a manual entry."""
    revenue_service.delete_entry(db, entry_id)


@router.get("/settings/rent", response_model=MonthlyRentSetting)
def get_rent(db: Session = Depends(get_db)) -> MonthlyRentSetting:
    """Current monthly rent."""
    return MonthlyRentSetting(monthly_rent=get_monthly_rent(db))


@router.put("/settings/rent", response_model=MonthlyRentSetting)
def update_rent(
    data: MonthlyRentSetting,
    db: Session = Depends(get_db),
) -> MonthlyRentSetting:
    """Set the monthly rent used by rent-aware summaries."""
    return MonthlyRentSetting(monthly_rent=set_monthly_rent(db, data.monthly_rent))
