"""Application configuration utilities."""

from __future__ import annotations

import os
from datetime import date
from functools import lru_cache

from pydantic import BaseModel


class Settings(BaseModel):
    DATABASE_URL: str = ""
    LOG_LEVEL: str = "INFO"
    SCHEDULE_START_DATE: date = date(2026, 1, 12)
    MAX_DAYS: int = 999
    LOOP_COOLDOWN_HOURS: int = 24
    HISTORY_LIMIT: int = 100
    DEFAULT_STRATEGY: str = "least_available"


@lru_cache
def get_settings() -> Settings:
    return Settings(
        DATABASE_URL=os.getenv("DATABASE_URL", ""),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        SCHEDULE_START_DATE=os.getenv("SCHEDULE_START_DATE", "2026-01-12"),
        MAX_DAYS=os.getenv("MAX_DAYS", "999"),
        LOOP_COOLDOWN_HOURS=os.getenv("LOOP_COOLDOWN_HOURS", "24"),
        HISTORY_LIMIT=os.getenv("HISTORY_LIMIT", "100"),
        DEFAULT_STRATEGY=os.getenv("DEFAULT_STRATEGY", "least_available"),
    )


settings = get_settings()
