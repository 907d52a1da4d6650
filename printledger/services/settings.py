"""Scalar settings stored in the database."""

from decimal import Decimal

from sqlalchemy.orm import Session

from printledger.core.config import settings
from printledger.models.revenue import AppSetting

MONTHLY_RENT_KEY = "monthly_rent"


def get_monthly_rent(db: Session) -> Decimal:
    """The stored monthly rent, or the configured default."""
    row = db.get(AppSetting, MONTHLY_RENT_KEY)
    if row is None:
        return settings.DEFAULT_MONTHLY_RENT
    return Decimal(row.value)


def set_monthly_rent(db: Session, monthly_rent: Decimal) -> Decimal:
    """Store the monthly rent."""
    row = db.get(AppSetting, MONTHLY_RENT_KEY)
    if row is None:
        row = AppSetting(key=MONTHLY_RENT_KEY, value=str(monthly_rent))
        db.add(row)
    else:
        row.value = str(monthly_rent)
    db.commit()
    return Decimal(row.value)
