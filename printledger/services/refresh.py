"""Refresh pipeline: fetch each device's counter, store it, update status.

Devices are polled one after another. A failing device is marked offline or
error and the batch moves on; nothing is retried automatically. Each device
commits on its own, so a partial run leaves valid data behind.
"""

import asyncio
from collections.abc import Callable
from datetime import date

import httpx
import structlog
from sqlalchemy.orm import Session

from printledger.models.device import Device
from printledger.models.enums import DeviceStatus, FetchFailure
from printledger.schemas.refresh import RefreshResult
from printledger.services.counter_source import CounterFetchError, build_client, fetch_counter
from printledger.services.device import get_device, get_devices, mark_status
from printledger.services.readings import upsert_reading
from printledger.services.reconcile import reconcile

logger = structlog.get_logger()


async def refresh_device(
    db: Session,
    client: httpx.AsyncClient,
    device: Device,
    today: date,
) -> RefreshResult:
    """Poll one device and record today's counter."""
    log = logger.bind(device_id=device.id, display_name=device.display_name)
    try:
        if not device.target_url:
            raise CounterFetchError(FetchFailure.RESOLVE_FAILURE, "No target URL configured")
        counter = await fetch_counter(client, device.target_url)
    except CounterFetchError as exc:
        new_status = exc.kind.device_status()
        mark_status(db, device, new_status, exc.message)
        log.warning("Counter fetch failed", error_kind=exc.kind.value, error=exc.message)
        return RefreshResult(
            device_id=device.id,
            display_name=device.display_name,
            success=False,
            status=new_status,
            reading_date=today,
            error_kind=exc.kind,
            error=exc.message,
        )

    upsert_reading(db, device.id, today, counter)
    mark_status(db, device, DeviceStatus.ONLINE)
    deltas = reconcile(db, device.id, today, today)
    delta = deltas[0].delta if deltas else None
    log.info("Counter refreshed", counter=counter, delta=delta)

    return RefreshResult(
        device_id=device.id,
        display_name=device.display_name,
        success=True,
        status=DeviceStatus.ONLINE,
        reading_date=today,
        counter=counter,
        delta=delta,
    )


async def refresh_one(
    db: Session,
    device_id: int,
    today: date | None = None,
    client: httpx.AsyncClient | None = None,
) -> RefreshResult:
    """Poll a single device."""
    device = get_device(db, device_id)
    today = today or date.today()
    if client is not None:
        return await refresh_device(db, client, device, today)
    async with build_client() as own_client:
        return await refresh_device(db, own_client, device, today)


async def refresh_all(
    db: Session,
    today: date | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[RefreshResult]:
    """Poll every active device in turn."""
    today = today or date.today()
    devices = get_devices(db, active_only=True)
    if client is None:
        async with build_client() as own_client:
            return [await refresh_device(db, own_client, d, today) for d in devices]
    return [await refresh_device(db, client, d, today) for d in devices]


async def run_periodic_refresh(
    session_factory: Callable[[], Session],
    interval_minutes: int,
) -> None:
    """Refresh all devices every ``interval_minutes`` until cancelled."""
    while True:
        db = session_factory()
        try:
            results = await refresh_all(db)
            failed = sum(1 for r in results if not r.success)
            logger.info("Scheduled refresh finished", devices=len(results), failed=failed)
        except Exception:
            logger.exception("Scheduled refresh failed")
        finally:
            db.close()
        await asyncio.sleep(interval_minutes * 60)
