import asyncio

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import ValidationError

from sliding_log.config import (
    Settings,
    build_eviction_service,
    build_limiter,
    load_settings,
)
from sliding_log.durations import minutes, seconds
from sliding_log.guard import KeyedRateLimiter
from sliding_log.jobs.eviction import JOB_ID

ENV_VARS = (
    "RATE_LIMIT_CAPACITY",
    "RATE_LIMIT_WINDOW",
    "EVICTION_INTERVAL_SECONDS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.rate_limit_capacity == 10
    assert settings.rate_limit_window == minutes(1)
    assert settings.eviction_interval_seconds == 300
    assert settings.log_level == "INFO"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_CAPACITY", "3")
    monkeypatch.setenv("RATE_LIMIT_WINDOW", "30s")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.rate_limit_capacity == 3
    assert settings.rate_limit_window == seconds(30)
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name, value",
    [
        ("RATE_LIMIT_CAPACITY", "-1"),
        ("RATE_LIMIT_WINDOW", "0s"),
        ("RATE_LIMIT_WINDOW", "soon"),
        ("EVICTION_INTERVAL_SECONDS", "0"),
    ],
)
def test_invalid_values_fail_validation(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_load_settings_wraps_validation_errors(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_CAPACITY", "lots")

    with pytest.raises(RuntimeError, match="Invalid configuration"):
        load_settings()


def test_load_settings_is_cached():
    assert load_settings() is load_settings()


def test_build_limiter_from_settings():
    settings = Settings(
        _env_file=None, rate_limit_capacity=2, rate_limit_window=minutes(5)
    )

    guard = build_limiter(settings)

    assert isinstance(guard, KeyedRateLimiter)
    assert guard.capacity == 2
    assert guard.window_millis == 300_000


@pytest.mark.asyncio
async def test_eviction_interval_reaches_the_job(monkeypatch):
    monkeypatch.setenv("EVICTION_INTERVAL_SECONDS", "45")
    settings = Settings(_env_file=None)
    scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
    guard = build_limiter(settings)

    service = build_eviction_service(settings, guard, scheduler)
    service.start()
    scheduler.start()

    assert service.guard is guard
    assert scheduler.get_job(JOB_ID).trigger.interval.total_seconds() == 45

    scheduler.shutdown(wait=False)
