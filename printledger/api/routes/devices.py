"""Device registry routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from printledger.core.database import get_db
from printledger.schemas.device import DeviceCreate, DeviceResponse, DeviceUpdate
from printledger.services import device as device_service

router = APIRouter(prefix="/devices", tags=["devices"])


@router.post("/", response_model=DeviceResponse, status_code=status.HTTP_201_CREATED)
def create_device(
    device_data: DeviceCreate,
    db: Session = Depends(get_db),
):
    """Register a printer with its pricing rule."""
    return device_service.create_device(db, device_data)


@router.get("/", response_model=list[DeviceResponse])
def list_devices(
    active_only: bool = Query(True, description="Only return active devices"),
    db: Session = Depends(get_db),
):
    """List devices ordered by name."""
    return device_service.get_devices(db, active_only)


@router.get("/{device_id}", response_model=DeviceResponse)
def get_device(
    device_id: int,
    db: Session = Depends(get_db),
):
    """Get a device by ID."""
    return device_service.get_device(db, device_id)


@router.patch("/{device_id}", response_model=DeviceResponse)
def update_device(
    device_id: int,
    device_data: DeviceUpdate,
    db: Session = Depends(get_db),
):
    """Update a device or its pricing rule.

    Aggregations always use the current rule, so a price change also
    re-prices past periods.
    """
    return device_service.update_device(db, device_id, device_data)


@router.delete("/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_device(
    device_id: int,
    db: Session = Depends(get_db),
) -> None:
    """Deactivate a device. Its readings remain part of the history."""
    device_service.deactivate_device(db, device_id)
