# marketboard/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass(frozen=True)
class Settings:
    VS_CURRENCY: str = "usd"

    PRIMARY_PAGES: int = 3
    PRIMARY_PER_PAGE: int = 100
    PRIMARY_RETRIES: int = 1
    PRIMARY_RETRY_DELAY_SECONDS: float = 1.0
    GLOBAL_RETRIES: int = 0
    SECONDARY_LIMIT: int = 100
    REQUEST_TIMEOUT_SECONDS: float = 15.0

    COIN_REFRESH_SECONDS: int = 60
    GLOBAL_REFRESH_SECONDS: int = 180
    ENRICH_REFRESH_SECONDS: int = 0
    ENRICH_MAX_CONCURRENCY: int = 8
    HISTORY_INTERVAL: str = "1d"
    HISTORY_LIMIT: int = 7

    CACHE_DIR: str = "./.marketboard"
    FAVORITES_DB_URL: str = "sqlite+aiosqlite:///./marketboard.db"
    SCHEDULER_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"

    @staticmethod
    def from_env() -> "Settings":
        d = Settings()
        return Settings(
            VS_CURRENCY=os.getenv("VS_CURRENCY", d.VS_CURRENCY).lower(),
            PRIMARY_PAGES=parse_int(os.getenv("PRIMARY_PAGES"), d.PRIMARY_PAGES),
            PRIMARY_PER_PAGE=parse_int(os.getenv("PRIMARY_PER_PAGE"), d.PRIMARY_PER_PAGE),
            PRIMARY_RETRIES=parse_int(os.getenv("PRIMARY_RETRIES"), d.PRIMARY_RETRIES),
            PRIMARY_RETRY_DELAY_SECONDS=parse_float(
                os.getenv("PRIMARY_RETRY_DELAY_SECONDS"), d.PRIMARY_RETRY_DELAY_SECONDS
            ),
            GLOBAL_RETRIES=parse_int(os.getenv("GLOBAL_RETRIES"), d.GLOBAL_RETRIES),
            SECONDARY_LIMIT=parse_int(os.getenv("SECONDARY_LIMIT"), d.SECONDARY_LIMIT),
            REQUEST_TIMEOUT_SECONDS=parse_float(os.getenv("REQUEST_TIMEOUT_SECONDS"), d.REQUEST_TIMEOUT_SECONDS),
            COIN_REFRESH_SECONDS=parse_int(os.getenv("COIN_REFRESH_SECONDS"), d.COIN_REFRESH_SECONDS),
            GLOBAL_REFRESH_SECONDS=parse_int(os.getenv("GLOBAL_REFRESH_SECONDS"), d.GLOBAL_REFRESH_SECONDS),
            ENRICH_REFRESH_SECONDS=parse_int(os.getenv("ENRICH_REFRESH_SECONDS"), d.ENRICH_REFRESH_SECONDS),
            ENRICH_MAX_CONCURRENCY=parse_int(os.getenv("ENRICH_MAX_CONCURRENCY"), d.ENRICH_MAX_CONCURRENCY),
            HISTORY_INTERVAL=os.getenv("HISTORY_INTERVAL", d.HISTORY_INTERVAL),
            HISTORY_LIMIT=parse_int(os.getenv("HISTORY_LIMIT"), d.HISTORY_LIMIT),
            CACHE_DIR=os.getenv("CACHE_DIR", d.CACHE_DIR),
            FAVORITES_DB_URL=os.getenv("FAVORITES_DB_URL", d.FAVORITES_DB_URL),
            SCHEDULER_ENABLED=parse_bool(os.getenv("SCHEDULER_ENABLED"), d.SCHEDULER_ENABLED),
            LOG_LEVEL=os.getenv("LOG_LEVEL", d.LOG_LEVEL).upper(),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
