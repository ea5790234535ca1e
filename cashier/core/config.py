from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Cashier"

    # Catalog database; the demo catalog is used when unset
    DB_SYNC_URL: Optional[str] = None

    TAX_RATE: Decimal = Decimal("0.085")

    # Seconds
    CARD_SETTLEMENT_DELAY: float = 2.0
    MOBILE_SETTLEMENT_DELAY: float = 3.0
    SETTLEMENT_TIMEOUT: Optional[float] = 30.0

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    class Config:
        env_file = ".env"

settings = Settings()
