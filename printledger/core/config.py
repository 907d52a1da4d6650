"""Application configuration settings."""

import os
from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_database_url() -> str:
    """Get the default database URL, using a mounted data volume if available."""
    if os.path.isdir("/data"):
        return "sqlite:////data/printledger.db"
    return "sqlite:///./printledger.db"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "PrintLedger"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    DATABASE_URL: str = _get_default_database_url()

    # Fixed monthly cost used until one is stored through the settings API
    DEFAULT_MONTHLY_RENT: Decimal = Decimal("150")

    # Counter polling
    FETCH_TIMEOUT_SECONDS: float = 10.0
    FETCH_VERIFY_TLS: bool = False
    REFRESH_INTERVAL_MINUTES: int = 0  # 0 disables the background loop
    USER_AGENT: str = "PrintLedger/0.1"

    # How far back a comparison may look for a baseline reading
    COMPARISON_LOOKBACK_DAYS: int = 30


settings = Settings()
