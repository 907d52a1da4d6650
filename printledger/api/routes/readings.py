"""Counter reading routes."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from printledger.core.database import get_db
from printledger.schemas.reading import (
    DailyDeltaResponse,
    DeviceDeltaHistory,
    ReadingResponse,
    ReadingUpsert,
)
from printledger.services import readings as reading_service
from printledger.services.device import get_device
from printledger.services.reconcile import reconcile

router = APIRouter(prefix="/readings", tags=["readings"])


@router.put("/", response_model=ReadingResponse)
def upsert_reading(
    reading_data: ReadingUpsert,
    db: Session = Depends(get_db),
):
    """Record the counter for a device and day, replacing any earlier value."""
    return reading_service.upsert_reading(
        db,
        reading_data.device_id,
        reading_data.reading_date,
        reading_data.cumulative_counter,
        reading_data.captured_at,
    )


@router.get("/device/{device_id}", response_model=list[ReadingResponse])
def get_reading_history(
    device_id: int,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Reading history for a device, newest first."""
    get_device(db, device_id)
    readings, _ = reading_service.get_readings_history(db, device_id, limit, offset)
    return readings


@router.get("/device/{device_id}/deltas", response_model=DeviceDeltaHistory)
def get_device_deltas(
    device_id: int,
    start_date: date = Query(..., description="First day of the range"),
    end_date: date = Query(..., description="Last day of the range"),
    db: Session = Depends(get_db),
) -> DeviceDeltaHistory:
    """Daily page counts for a device.

    Only days with a reading appear; a gap is attributed to the next day
    that has one.
    """
    get_device(db, device_id)
    try:
        deltas = reconcile(db, device_id, start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return DeviceDeltaHistory(
        device_id=device_id,
        start_date=start_date,
        end_date=end_date,
        deltas=[
            DailyDeltaResponse(
                reading_date=d.reading_date,
                cumulative_counter=d.cumulative_counter,
                delta=d.delta,
                counter_reset=d.counter_reset,
            )
            for d in deltas
        ],
        total=sum(d.delta for d in deltas),
    )
