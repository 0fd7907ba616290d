from __future__ import annotations

from booking_engine.application.exceptions import NotFoundError, Unauthorized
from booking_engine.application.ports.appointment_repository import AppointmentRepositoryPort
from booking_engine.application.ports.catalog import CatalogPort
from booking_engine.application.utils.invariants import check_appointment
from booking_engine.domain.entities.appointment import Appointment


def _newest_first(appointments: list[Appointment]) -> list[Appointment]:
    # date descending, then start time ascending within a day
    ordered = sorted(appointments, key=lambda a: a.start_time)
    return sorted(ordered, key=lambda a: a.date, reverse=True)


class AppointmentQueries:
    def __init__(self, appointments: AppointmentRepositoryPort, catalog: CatalogPort) -> None:
        self._appointments = appointments
        self._catalog = catalog

    def get_for_user(self, appointment_id: str, user_id: str) -> Appointment:
        """Visible to the customer who booked it and to the owner of the shop."""
        appointment = self._appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        shop = self._catalog.get_shop(appointment.shop_id)
        is_owner = shop is not None and shop.owner_id == user_id
        if not is_owner and appointment.customer_id != user_id:
            raise Unauthorized("Unauthorized access to appointment")
        return check_appointment(appointment)

    def for_customer(self, customer_id: str) -> list[Appointment]:
        return _newest_first([check_appointment(a) for a in self._appointments.list_for_customer(customer_id)])

    def for_shop(self, shop_id: str, owner_id: str) -> list[Appointment]:
        shop = self._catalog.get_shop(shop_id)
        if shop is None:
            raise NotFoundError("Shop not found")
        if shop.owner_id != owner_id:
            raise Unauthorized("You are not the owner of this shop")
        return _newest_first([check_appointment(a) for a in self._appointments.list_for_shop(shop_id)])
