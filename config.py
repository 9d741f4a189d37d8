import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        auth_secret: str,
        token_max_age_hours: int,
        currency_symbol: str,
        dismissal_retention_months: int,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.auth_secret = auth_secret
        self.token_max_age_hours = token_max_age_hours
        self.currency_symbol = currency_symbol
        self.dismissal_retention_months = dismissal_retention_months


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("BUDGETRECS_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "budget.db"
    database_url = os.getenv("BUDGETRECS_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("BUDGETRECS_TIMEZONE", "UTC")
    auth_secret = os.getenv(
        "BUDGETRECS_AUTH_SECRET",
        "4f0c7d2b9a61e8355c2e1f7ab04d96c3e28b5f1a7d6093c4be2a81f5d07c3e94",
    )
    token_max_age_hours = int(os.getenv("BUDGETRECS_TOKEN_MAX_AGE_HOURS", "24"))
    currency_symbol = os.getenv("BUDGETRECS_CURRENCY_SYMBOL", "$")
    dismissal_retention_months = int(
        os.getenv("BUDGETRECS_DISMISSAL_RETENTION_MONTHS", "6")
    )
    return Settings(
        database_url=database_url,
        timezone=timezone,
        auth_secret=auth_secret,
        token_max_age_hours=token_max_age_hours,
        currency_symbol=currency_symbol,
        dismissal_retention_months=dismissal_retention_months,
    )
