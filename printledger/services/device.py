"""Device service for business logic."""

from datetime import UTC, datetime

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from printledger.models.device import Device
from printledger.models.enums import DeviceStatus
from printledger.schemas.device import DeviceCreate, DeviceUpdate


def _check_name_free(db: Session, display_name: str, exclude_id: int | None = None) -> None:
    query = db.query(Device).filter(Device.display_name == display_name)
    if exclude_id is not None:
        query = query.filter(Device.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Device with name '{display_name}' already exists",
        )


def create_device(db: Session, device_data: DeviceCreate) -> Device:
    """Register a new device. It starts offline until its first refresh."""
    _check_name_free(db, device_data.display_name)

    db_device = Device(**device_data.model_dump(), status=DeviceStatus.OFFLINE)
    db.add(db_device)
    db.commit()
    db.refresh(db_device)
    return db_device


def get_device(db: Session, device_id: int) -> Device:
    """Get a device by ID."""
    device = db.query(Device).filter(Device.id == device_id).first()
    if not device:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Device not found",
        )
    return device


def get_devices(db: Session, active_only: bool = True) -> list[Device]:
    """Get all devices ordered by name."""
    query = db.query(Device)
    if active_only:
        query = query.filter(Device.is_active.is_(True))
    return query.order_by(Device.display_name).all()


def update_device(db: Session, device_id: int, device_data: DeviceUpdate) -> Device:
    """Update a device and its pricing rule."""
    device = get_device(db, device_id)

    update_data = device_data.model_dump(exclude_unset=True)
    if "display_name" in update_data:
        _check_name_free(db, update_data["display_name"], exclude_id=device_id)

    for field, value in update_data.items():
        setattr(device, field, value)

    db.commit()
    db.refresh(device)
    return device


def deactivate_device(db: Session, device_id: int) -> None:
    """Soft-delete a device; its readings stay in the ledger."""
    device = get_device(db, device_id)
    device.is_active = False
    db.commit()


def mark_status(
    db: Session,
    device: Device,
    new_status: DeviceStatus,
    error: str | None = None,
) -> Device:
    """Record the outcome of a refresh on the device."""
    device.status = new_status
    device.last_error = error[:500] if error else None
    if new_status == DeviceStatus.ONLINE:
        device.last_updated = datetime.now(UTC)
    db.commit()
    db.refresh(device)
    return device
