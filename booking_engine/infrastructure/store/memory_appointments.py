from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date

from booking_engine.application.exceptions import NotFoundError, PersistenceError
from booking_engine.application.ports.appointment_repository import AppointmentRepositoryPort
from booking_engine.domain.entities.appointment import Appointment, AppointmentStatus, Payment


class MemoryAppointmentRepository(AppointmentRepositoryPort):
    def __init__(self) -> None:
        self._appointments: dict[str, Appointment] = {}
        self._lock = threading.Lock()

    def add(self, appointment: Appointment) -> None:
        with self._lock:
            if appointment.id in self._appointments:
                raise PersistenceError(f"Appointment {appointment.id} already exists")
            self._appointments[appointment.id] = appointment

    def get(self, appointment_id: str) -> Appointment | None:
        with self._lock:
            return self._appointments.get(appointment_id)

    def list_for_shop_date(self, shop_id: str, day: date) -> list[Appointment]:
        with self._lock:
            return [a for a in self._appointments.values() if a.shop_id == shop_id and a.date == day]

    def list_for_shop(self, shop_id: str) -> list[Appointment]:
        with self._lock:
            return [a for a in self._appointments.values() if a.shop_id == shop_id]

    def list_for_customer(self, customer_id: str) -> list[Appointment]:
        with self._lock:
            return [a for a in self._appointments.values() if a.customer_id == customer_id]

    def list_non_terminal(self) -> list[Appointment]:
        with self._lock:
            return [a for a in self._appointments.values() if a.occupies_slot]

    def compare_and_set(self, appointment_id: str, expected_status: AppointmentStatus, updated: Appointment) -> bool:
        with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None or current.status != expected_status:
                return False
            self._appointments[appointment_id] = updated
            return True

    def update_payment(self, appointment_id: str, payment: Payment) -> Appointment:
        with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None:
                raise NotFoundError("Appointment not found")
            updated = replace(current, payment=payment)
            self._appointments[appointment_id] = updated
            return updated
