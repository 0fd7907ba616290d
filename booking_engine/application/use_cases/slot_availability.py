from __future__ import annotations

import logging
from datetime import date

from booking_engine.application.exceptions import NotFoundError
from booking_engine.application.ports.appointment_repository import AppointmentRepositoryPort
from booking_engine.application.ports.catalog import CatalogPort
from booking_engine.application.ports.clock import ClockPort
from booking_engine.application.utils.calendar_model import (
    minutes_to_time,
    operating_window,
    shop_local_now,
    slot_from_start,
)
from booking_engine.application.utils.invariants import check_appointment
from booking_engine.domain.entities.service import Service
from booking_engine.domain.entities.shop import Shop
from booking_engine.domain.entities.time_slot import TimeSlot


class SlotAvailabilityCalculator:
    """
    Read-only computation of free slots for a (shop, service, date).

    Candidates start at opening time and advance by `granularity_minutes`;
    they may overlap each other but never an appointment that still holds
    its slot. An empty result means "no availability", not an error.
    """

    def __init__(
        self,
        catalog: CatalogPort,
        appointments: AppointmentRepositoryPort,
        clock: ClockPort,
        granularity_minutes: int = 15,
    ) -> None:
        if granularity_minutes <= 0:
            raise ValueError("granularity_minutes must be positive")
        self._catalog = catalog
        self._appointments = appointments
        self._clock = clock
        self._granularity = granularity_minutes
        self._logger = logging.getLogger(__name__)

    def available_slots(self, shop_id: str, service_id: str, day: date) -> list[TimeSlot]:
        shop = self._catalog.get_shop(shop_id)
        if shop is None:
            raise NotFoundError("Shop not found")
        service = self._catalog.get_service(service_id)
        if service is None or service.shop_id != shop.id:
            raise NotFoundError("Service not found")
        return self.slots_for(shop, service, day)

    def slots_for(self, shop: Shop, service: Service, day: date) -> list[TimeSlot]:
        if not service.is_active or service.duration_minutes <= 0:
            return []

        window = operating_window(shop, day)
        if window is None:
            return []

        local_now = shop_local_now(shop, self._clock.now())
        if day < local_now.date():
            return []

        occupied = [
            check_appointment(appointment).slot
            for appointment in self._appointments.list_for_shop_date(shop.id, day)
            if appointment.occupies_slot
        ]

        slots: list[TimeSlot] = []
        start_minutes = window.start_minutes
        while start_minutes + service.duration_minutes <= window.end_minutes:
            candidate = slot_from_start(minutes_to_time(start_minutes), service.duration_minutes)
            start_minutes += self._granularity
            if candidate is None:
                break
            if day == local_now.date() and candidate.start < local_now.time():
                continue
            if any(candidate.overlaps(taken) for taken in occupied):
                continue
            slots.append(candidate)

        self._logger.debug(
            "Computed available slots",
            extra={"shop_id": shop.id, "service_id": service.id, "date": day.isoformat(), "count": len(slots)},
        )
        return slots
