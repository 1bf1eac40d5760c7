"""Sync settings read from T212_SYNC_* environment variables or a .env file.

Only the two API tokens and the budget/account ids are required for a live
sync; everything else has a default that suits a daily cron run.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TRADING212_LIVE_URL = "https://live.trading212.com"
TRADING212_DEMO_URL = "https://demo.trading212.com"
YNAB_API_URL = "https://api.ynab.com/v1"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Settings for one Trading212 account synced into one YNAB account.

    Examples:
        T212_SYNC_YNAB_BUDGET_ID=3f1c...
        T212_SYNC_YNAB_ACCOUNT_ID=9a0e...
        T212_SYNC_TRADING212_TOKEN=...
        T212_SYNC_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="T212_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "t212-ynab-sync"
    environment: Environment = Environment.DEVELOPMENT

    # YNAB
    ynab_budget_id: str = Field(default="", description="YNAB budget to sync into")
    ynab_account_id: str = Field(
        default="", description="YNAB account mirroring the Trading212 account"
    )
    ynab_token: SecretStr = Field(default=SecretStr(""))
    ynab_base_url: str = YNAB_API_URL

    # Optional YNAB categories
    stock_category_id: str | None = None
    dividend_category_id: str | None = None
    conversion_fee_category_id: str | None = None

    # Trading212
    trading212_token: SecretStr = Field(default=SecretStr(""))
    trading212_base_url: str = TRADING212_LIVE_URL

    # HTTP / export polling
    http_timeout: float = Field(default=30.0, gt=0)
    export_poll_interval: float = Field(
        default=30.0,
        ge=0,
        description="Seconds to wait between export status checks",
    )
    export_max_poll_attempts: int = Field(default=20, ge=1)
    export_lookback_days: int = Field(default=365, ge=1)

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] = "console"
    log_file: Path | None = None

    @field_validator(
        "stock_category_id",
        "dividend_category_id",
        "conversion_fee_category_id",
        mode="before",
    )
    @classmethod
    def blank_category_is_unset(cls, v: str | None) -> str | None:
        """Treat an empty category id as "no category"."""
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @model_validator(mode="after")
    def json_logs_in_production(self) -> "Settings":
        if self.is_production and "log_format" not in self.model_fields_set:
            self.log_format = "json"
        return self

    @property
    def missing_credentials(self) -> list[str]:
        """Names of settings a live sync needs but which are not set."""
        missing = []
        if not self.ynab_budget_id:
            missing.append("ynab_budget_id")
        if not self.ynab_account_id:
            missing.append("ynab_account_id")
        if not self.ynab_token.get_secret_value():
            missing.append("ynab_token")
        if not self.trading212_token.get_secret_value():
            missing.append("trading212_token")
        return missing

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Settings for this process; get_settings.cache_clear() forces a reload."""
    return Settings()
