from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class OperatingHours:
    day: str  # "Monday" .. "Sunday"
    open: time | None = None
    close: time | None = None
    is_closed: bool = False


@dataclass(frozen=True)
class Shop:
    id: str
    owner_id: str
    name: str
    timezone: str
    auto_confirm: bool
    operating_hours: tuple[OperatingHours, ...] = ()
    closed_dates: frozenset[date] = field(default_factory=frozenset)

    def hours_for(self, weekday: str) -> OperatingHours | None:
        for entry in self.operating_hours:
            if entry.day == weekday:
                return entry
        return None
