from datetime import UTC, datetime, timedelta

from src.adapters.clock import FixedClock, SystemClock


def test_system_clock():
    clock = SystemClock()
    now = clock.now_utc()
    assert now.tzinfo is not None
    # Sanity check: is it close to real now?
    diff = abs((datetime.now(UTC) - now).total_seconds())
    assert diff < 1.0


def test_system_clock_never_repeats_or_goes_backwards():
    t0 = datetime(2025, 1, 1, tzinfo=UTC)
    readings = iter([t0, t0, t0 - timedelta(seconds=5), t0 + timedelta(seconds=1)])
    clock = SystemClock(source=lambda: next(readings))

    got = [clock.now_utc() for _ in range(4)]

    assert got == [
        t0,
        t0 + timedelta(microseconds=1),
        t0 + timedelta(microseconds=2),
        t0 + timedelta(seconds=1),
    ]


def test_fixed_clock_steps():
    start = datetime(2025, 1, 1, tzinfo=UTC)
    clock = FixedClock(start, step=timedelta(seconds=1))

    assert clock.now_utc() == start
    assert clock.now_utc() == start + timedelta(seconds=1)


def test_fixed_clock_naive_start_is_utc():
    clock = FixedClock(datetime(2025, 1, 1))
    assert clock.now_utc().tzinfo == UTC
    assert clock.now_utc() == datetime(2025, 1, 1, tzinfo=UTC)


def test_request_clock_is_shared_per_process():
    from src.api.deps import get_clock

    assert get_clock() is get_clock()
