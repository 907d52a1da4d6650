"""Shared fixtures: an in-memory database and an API client bound to it."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from printledger import models  # noqa: F401
from printledger.core.database import Base, get_db
from printledger.main import app
from printledger.models.device import Device
from printledger.models.enums import DeviceStatus, PrinterClass


@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(test_db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_device(test_db):
    """Factory for devices stored in the test database."""

    def _make(
        display_name: str = "Front Desk",
        price_per_page: str = "0.5",
        cost_per_page: str = "0.05",
        revenue_formula: str | None = None,
        cost_formula: str | None = None,
        target_url: str | None = None,
        is_active: bool = True,
    ) -> Device:
        device = Device(
            display_name=display_name,
            printer_class=PrinterClass.MONO,
            price_per_page=Decimal(price_per_page),
            cost_per_page=Decimal(cost_per_page),
            revenue_formula=revenue_formula,
            cost_formula=cost_formula,
            target_url=target_url,
            status=DeviceStatus.OFFLINE,
            is_active=is_active,
        )
        test_db.add(device)
        test_db.commit()
        test_db.refresh(device)
        return device

    return _make
