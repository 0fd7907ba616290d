from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from booking_engine.domain.entities.appointment import Appointment, AppointmentStatus, Payment


class AppointmentRepositoryPort(ABC):
    @abstractmethod
    def add(self, appointment: Appointment) -> None:
        """Persist a new appointment. Raises PersistenceError on failure."""
        raise NotImplementedError

    @abstractmethod
    def get(self, appointment_id: str) -> Appointment | None:
        raise NotImplementedError

    @abstractmethod
    def list_for_shop_date(self, shop_id: str, day: date) -> list[Appointment]:
        raise NotImplementedError

    @abstractmethod
    def list_for_shop(self, shop_id: str) -> list[Appointment]:
        raise NotImplementedError

    @abstractmethod
    def list_for_customer(self, customer_id: str) -> list[Appointment]:
        raise NotImplementedError

    @abstractmethod
    def list_non_terminal(self) -> list[Appointment]:
        raise NotImplementedError

    @abstractmethod
    def compare_and_set(self, appointment_id: str, expected_status: AppointmentStatus, updated: Appointment) -> bool:
        """
        Atomically replace the stored appointment if its status still equals
        `expected_status`. Returns False when another writer got there first.
        """
        raise NotImplementedError

    @abstractmethod
    def update_payment(self, appointment_id: str, payment: Payment) -> Appointment:
        raise NotImplementedError
