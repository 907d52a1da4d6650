"""Waste ledger routes."""

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from printledger.core.database import get_db
from printledger.schemas.waste import (
    WasteDayResponse,
    WasteEntryCreate,
    WasteEntryResponse,
    WasteSummarySet,
)
from printledger.services import waste as waste_service
from printledger.services.device import get_device

router = APIRouter(prefix="/waste", tags=["waste"])


def _day_response(db: Session, device_id: int, waste_date: date) -> WasteDayResponse:
    entries = waste_service.entries_for(db, device_id, waste_date)
    return WasteDayResponse(
        device_id=device_id,
        waste_date=waste_date,
        entries=[WasteEntryResponse.model_validate(e) for e in entries],
        total=waste_service.summary_for(db, device_id, waste_date),
    )


@router.post("/", response_model=WasteEntryResponse, status_code=status.HTTP_201_CREATED)
def add_waste_entry(
    data: WasteEntryCreate,
    db: Session = Depends(get_db),
):
    """Log wasted pages (jams, misprints, test pages) for a device and day."""
    return waste_service.add_entry(
        db, data.device_id, data.waste_date, data.waste_count, data.note, data.operator
    )


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_waste_entry(
    entry_id: int,
    db: Session = Depends(get_db),
) -> None:
    """Delete a waste entry."""
    waste_service.remove_entry(db, entry_id)


@router.get("/device/{device_id}/{waste_date}", response_model=WasteDayResponse)
def get_waste_day(
    device_id: int,
    waste_date: date,
    db: Session = Depends(get_db),
) -> WasteDayResponse:
    """Waste entries and total for a device and day."""
    get_device(db, device_id)
    return _day_response(db, device_id, waste_date)


@router.put("/device/{device_id}/{waste_date}", response_model=WasteDayResponse)
def set_waste_day(
    device_id: int,
    waste_date: date,
    data: WasteSummarySet,
    db: Session = Depends(get_db),
) -> WasteDayResponse:
    """Replace the waste of a device and day with a single total."""
    waste_service.set_summary(db, device_id, waste_date, data.waste_count, data.operator)
    return _day_response(db, device_id, waste_date)
