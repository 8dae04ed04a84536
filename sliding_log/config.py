"""Application configuration management."""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sliding_log.durations import minutes, parse_duration, to_millis
from sliding_log.guard import KeyedRateLimiter
from sliding_log.jobs.eviction import EvictionService
from sliding_log.limiter import SlidingLogLimiter


class Settings(BaseSettings):
    """Runtime configuration loaded from environment or `.env`."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    rate_limit_capacity: int = Field(default=10, alias="RATE_LIMIT_CAPACITY", ge=0)
    rate_limit_window: timedelta = Field(
        default_factory=lambda: minutes(1),
        alias="RATE_LIMIT_WINDOW",
    )
    eviction_interval_seconds: int = Field(
        default=300,
        alias="EVICTION_INTERVAL_SECONDS",
        ge=1,
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("rate_limit_window", mode="before")
    @classmethod
    def _parse_window(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("rate_limit_window")
    @classmethod
    def _window_positive(cls, value: timedelta) -> timedelta:
        if to_millis(value) <= 0:
            raise ValueError("RATE_LIMIT_WINDOW must be at least 1ms")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Return cached Settings instance, raising a helpful message on failure."""
    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc


def build_limiter(settings: Settings) -> KeyedRateLimiter:
    """Create a clock-driven limiter from settings."""
    return KeyedRateLimiter(
        SlidingLogLimiter.create(
            capacity=settings.rate_limit_capacity,
            window=settings.rate_limit_window,
        )
    )


def build_eviction_service(
    settings: Settings, guard: KeyedRateLimiter, scheduler: AsyncIOScheduler
) -> EvictionService:
    """Create the idle-key sweep for ``guard`` on the caller's scheduler."""
    return EvictionService(
        guard=guard,
        scheduler=scheduler,
        interval_seconds=settings.eviction_interval_seconds,
    )


__all__ = ["Settings", "load_settings", "build_limiter", "build_eviction_service"]
