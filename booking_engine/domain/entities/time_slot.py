from __future__ import annotations

from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True, order=True)
class TimeSlot:
    """Half-open [start, end) window within a single day."""

    start: time
    end: time

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError("Slot end must be after slot start")

    @property
    def start_minutes(self) -> int:
        return self.start.hour * 60 + self.start.minute

    @property
    def end_minutes(self) -> int:
        return self.end.hour * 60 + self.end.minute

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def overlaps(self, other: TimeSlot) -> bool:
        return self.start < other.end and self.end > other.start
