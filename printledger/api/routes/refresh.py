"""Refresh routes: poll printers now."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from printledger.core.database import get_db
from printledger.schemas.refresh import RefreshResult
from printledger.services import refresh as refresh_service

router = APIRouter(prefix="/refresh", tags=["refresh"])


@router.post("/", response_model=list[RefreshResult])
async def refresh_all(db: Session = Depends(get_db)) -> list[RefreshResult]:
    """Poll every active device; failures are reported per device."""
    return await refresh_service.refresh_all(db)


@router.post("/{device_id}", response_model=RefreshResult)
async def refresh_one(device_id: int, db: Session = Depends(get_db)) -> RefreshResult:
    """Poll a single device."""
    return await refresh_service.refresh_one(db, device_id)
