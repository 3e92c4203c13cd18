"""
Runtime settings for the lead lifecycle and analytics services.

Values come from the process environment and a local `.env` in the crm-platform
directory (Supabase credentials are read separately by repositories/client.py).

Environment variables:
- CRM_LOG_LEVEL: logging level for the API process (default INFO)
- CRM_TREND_ZERO_FILL: emit zero-valued buckets for days without orders (default true)
- CRM_REVENUE_GROWTH_PERIOD_DAYS: length of the current/prior periods compared by
  revenue growth (default 30)
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

env_path = Path(__file__).parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=env_path,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", alias="CRM_LOG_LEVEL")
    trend_zero_fill: bool = Field(default=True, alias="CRM_TREND_ZERO_FILL")
    revenue_growth_period_days: int = Field(default=30, gt=0, alias="CRM_REVENUE_GROWTH_PERIOD_DAYS")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader so config is evaluated once per process."""

    settings = Settings()
    logger.info(
        "Settings loaded",
        extra={
            "trend_zero_fill": settings.trend_zero_fill,
            "revenue_growth_period_days": settings.revenue_growth_period_days,
        },
    )
    return settings


__all__ = ["Settings", "get_settings"]
