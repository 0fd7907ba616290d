from __future__ import annotations

from datetime import datetime, timezone

from booking_engine.application.ports.clock import ClockPort


class SystemClock(ClockPort):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(ClockPort):
    """Clock pinned to a given instant; `advance_to` moves it."""

    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance_to(self, now: datetime) -> None:
        self._now = now
