from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from booking_engine.domain.entities.time_slot import TimeSlot


class ReservationStorePort(ABC):
    @abstractmethod
    def claim(self, shop_id: str, day: date, slot: TimeSlot, holder_id: str) -> bool:
        """
        Atomic compare-and-insert. Stores the claim and returns True only if no
        existing claim for (shop_id, day) overlaps `slot`.
        """
        raise NotImplementedError

    @abstractmethod
    def release(self, holder_id: str) -> bool:
        """Drop the claim held by `holder_id`. Returns False if there was none."""
        raise NotImplementedError

    @abstractmethod
    def claims_for(self, shop_id: str, day: date) -> list[TimeSlot]:
        raise NotImplementedError
