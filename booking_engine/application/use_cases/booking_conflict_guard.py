from __future__ import annotations

import logging
from datetime import date

from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.application.results import Reservation, SlotTaken
from booking_engine.domain.entities.appointment import Appointment
from booking_engine.domain.entities.time_slot import TimeSlot


class BookingConflictGuard:
    """
    Exclusive claim on a (shop, date, interval).

    The store performs the existence check and the insert as one step; this
    class never holds a lock of its own, so nothing the caller does after
    `reserve` returns (payment, persistence) runs inside the critical section.
    """

    def __init__(self, store: ReservationStorePort) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)

    def reserve(self, shop_id: str, day: date, slot: TimeSlot, holder_id: str) -> Reservation | SlotTaken:
        if self._store.claim(shop_id, day, slot, holder_id):
            self._logger.info(
                "Slot reserved",
                extra={"shop_id": shop_id, "date": day.isoformat(), "slot": _label(slot), "holder_id": holder_id},
            )
            return Reservation(holder_id=holder_id, shop_id=shop_id, date=day, slot=slot)

        self._logger.info(
            "Slot already taken",
            extra={"shop_id": shop_id, "date": day.isoformat(), "slot": _label(slot), "holder_id": holder_id},
        )
        return SlotTaken(shop_id=shop_id, date=day, slot=slot)

    def release(self, reservation: Reservation | str) -> None:
        """Return the slot to the pool. Releasing a slot that is already free is a no-op."""
        holder_id = reservation.holder_id if isinstance(reservation, Reservation) else reservation
        if self._store.release(holder_id):
            self._logger.info("Slot released", extra={"holder_id": holder_id})

    def rebuild(self, appointments: list[Appointment]) -> int:
        """Re-claim the slots of persisted appointments that still occupy one."""
        restored = 0
        for appointment in appointments:
            if not appointment.occupies_slot:
                continue
            if self._store.claim(appointment.shop_id, appointment.date, appointment.slot, appointment.id):
                restored += 1
            else:
                self._logger.warning(
                    "Overlapping appointments found while rebuilding claims",
                    extra={"appointment_id": appointment.id, "shop_id": appointment.shop_id},
                )
        return restored


def _label(slot: TimeSlot) -> str:
    return f"{slot.start:%H:%M}-{slot.end:%H:%M}"
