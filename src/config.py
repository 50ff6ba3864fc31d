from __future__ import annotations

from datetime import date
from functools import cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    database_url: str = "sqlite:///registered_accounts.db"
    default_tfsa_start_year: int = 2009
    # Used for RESP accounts not yet linked to a beneficiary.
    resp_fallback_birth_date: date = date(2020, 1, 1)
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()
