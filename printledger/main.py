"""FastAPI application entry point."""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from printledger.api.routes import (
    analytics,
    devices,
    health,
    readings,
    refresh,
    revenues,
    waste,
)
from printledger.core.config import settings
from printledger.core.database import Base, SessionLocal, engine
from printledger.core.logging import configure_logging

# Import models for Base.metadata.create_all
from printledger import models  # noqa: F401
from printledger.services.refresh import run_periodic_refresh

configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    # Startup: Create database tables
    Base.metadata.create_all(bind=engine)

    refresh_task = None
    if settings.REFRESH_INTERVAL_MINUTES > 0:
        refresh_task = asyncio.create_task(
            run_periodic_refresh(SessionLocal, settings.REFRESH_INTERVAL_MINUTES)
        )
        logger.info("Scheduled refresh enabled", interval_minutes=settings.REFRESH_INTERVAL_MINUTES)
    yield
    # Shutdown: stop the refresh loop
    if refresh_task is not None:
        refresh_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await refresh_task


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Printer counter reconciliation and revenue analytics",
    lifespan=lifespan,
)

app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(devices.router, prefix="/api")
app.include_router(readings.router, prefix="/api")
app.include_router(waste.router, prefix="/api")
app.include_router(revenues.router, prefix="/api")
app.include_router(analytics.router, prefix="/api")
app.include_router(refresh.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "printledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
