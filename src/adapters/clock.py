import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

_TICK = timedelta(microseconds=1)


def _wall_clock() -> datetime:
    return datetime.now(UTC)


class SystemClock:
    """
    Wall clock that never repeats or goes backwards within this process.

    A reading at or before the previous one is bumped one microsecond past it.
    Separate processes sharing a store are not coordinated; listings still
    order such rows deterministically through the id tie-break.
    """

    def __init__(self, source: Callable[[], datetime] = _wall_clock) -> None:
        self._source = source
        self._lock = threading.Lock()
        self._last: datetime | None = None

    def now_utc(self) -> datetime:
        with self._lock:
            now = self._source()
            if self._last is not None and now <= self._last:
                now = self._last + _TICK
            self._last = now
            return now


class FixedClock:
    """Deterministic clock for seeding and tests. Advances by `step` per call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(0)) -> None:
        if start.tzinfo is None:
            start = start.replace(tzinfo=UTC)
        self._current = start
        self._step = step

    def now_utc(self) -> datetime:
        current = self._current
        self._current = current + self._step
        return current
