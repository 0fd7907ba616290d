from __future__ import annotations

import threading
from datetime import date

from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.domain.entities.time_slot import TimeSlot


class MemoryReservationStore(ReservationStorePort):
    """Claims per (shop, day); one lock per key so unrelated shops never contend."""

    def __init__(self) -> None:
        self._claims: dict[tuple[str, date], dict[str, TimeSlot]] = {}
        self._holders: dict[str, tuple[str, date]] = {}
        self._locks: dict[tuple[str, date], threading.Lock] = {}
        self._lock_lock = threading.Lock()  # guards _locks and _holders

    def _get_lock(self, key: tuple[str, date]) -> threading.Lock:
        with self._lock_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def claim(self, shop_id: str, day: date, slot: TimeSlot, holder_id: str) -> bool:
        key = (shop_id, day)
        with self._get_lock(key):
            claims = self._claims.setdefault(key, {})
            for other_holder, taken in claims.items():
                if other_holder != holder_id and taken.overlaps(slot):
                    return False
            claims[holder_id] = slot
            with self._lock_lock:
                self._holders[holder_id] = key
            return True

    def release(self, holder_id: str) -> bool:
        with self._lock_lock:
            key = self._holders.get(holder_id)
        if key is None:
            return False
        with self._get_lock(key):
            removed = self._claims.get(key, {}).pop(holder_id, None)
            with self._lock_lock:
                self._holders.pop(holder_id, None)
        return removed is not None

    def claims_for(self, shop_id: str, day: date) -> list[TimeSlot]:
        key = (shop_id, day)
        with self._get_lock(key):
            return sorted(self._claims.get(key, {}).values())
