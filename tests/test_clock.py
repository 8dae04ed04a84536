from datetime import datetime, timedelta, timezone

import pytest

from sliding_log.clock import ManualClock, system_millis, timestamp_millis


def test_system_millis_tracks_time(monkeypatch):
    monkeypatch.setattr("sliding_log.clock.time.time", lambda: 12.3456)

    assert system_millis() == 12345


def test_timestamp_millis_passes_ints_through():
    assert timestamp_millis(1_700_000_000_000) == 1_700_000_000_000


def test_timestamp_millis_converts_datetimes():
    aware = datetime(2024, 1, 1, tzinfo=timezone.utc)
    naive = datetime(2024, 1, 1)
    offset = datetime(2024, 1, 1, 2, tzinfo=timezone(timedelta(hours=2)))

    assert timestamp_millis(aware) == 1_704_067_200_000
    assert timestamp_millis(naive) == 1_704_067_200_000
    assert timestamp_millis(offset) == 1_704_067_200_000


@pytest.mark.parametrize("value", ["1000", 1.5, True, None])
def test_timestamp_millis_rejects_other_types(value):
    with pytest.raises(TypeError):
        timestamp_millis(value)


def test_manual_clock():
    clock = ManualClock(start=100)

    assert clock() == 100
    assert clock.advance(50) == 150
    clock.set(10)
    assert clock() == 10
