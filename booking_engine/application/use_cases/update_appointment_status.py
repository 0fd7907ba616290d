from __future__ import annotations

import logging
from dataclasses import replace

from booking_engine.application.exceptions import (
    InvalidTransition,
    NotFoundError,
    PaymentGatewayError,
    PersistenceError,
    Unauthorized,
)
from booking_engine.application.ports.appointment_repository import AppointmentRepositoryPort
from booking_engine.application.ports.catalog import CatalogPort
from booking_engine.application.ports.clock import ClockPort
from booking_engine.application.ports.payment_gateway import PaymentGatewayPort
from booking_engine.application.use_cases.appointment_state_machine import AppointmentStateMachine, SideEffect
from booking_engine.application.use_cases.booking_conflict_guard import BookingConflictGuard
from booking_engine.application.utils.invariants import check_appointment
from booking_engine.domain.entities.appointment import Actor, Appointment, AppointmentStatus, PaymentStatus
from booking_engine.domain.entities.shop import Shop


def resolve_actor(appointment: Appointment, shop: Shop, user_id: str) -> Actor:
    if user_id == shop.owner_id:
        return Actor.shop_owner
    if user_id == appointment.customer_id:
        return Actor.customer
    raise Unauthorized("You cannot update this appointment")


class UpdateAppointmentStatusUseCase:
    """Applies a status change requested by a customer or shop owner and runs its side effects."""

    def __init__(
        self,
        appointments: AppointmentRepositoryPort,
        catalog: CatalogPort,
        state_machine: AppointmentStateMachine,
        guard: BookingConflictGuard,
        payments: PaymentGatewayPort,
        clock: ClockPort,
    ) -> None:
        self._appointments = appointments
        self._catalog = catalog
        self._state_machine = state_machine
        self._guard = guard
        self._payments = payments
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def execute(self, appointment_id: str, target: AppointmentStatus, user_id: str) -> Appointment:
        appointment = self._appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        check_appointment(appointment)
        shop = self._catalog.get_shop(appointment.shop_id)
        if shop is None:
            raise NotFoundError("Shop not found")

        actor = resolve_actor(appointment, shop, user_id)
        outcome = self._state_machine.transition(appointment, target, actor, shop, self._clock.now())

        if not self._appointments.compare_and_set(appointment.id, outcome.previous_status, outcome.appointment):
            raise InvalidTransition("Appointment was modified concurrently, reload and try again")

        self._logger.info(
            "Appointment status changed",
            extra={
                "appointment_id": appointment.id,
                "shop_id": appointment.shop_id,
                "status": target.value,
                "actor": actor.value,
            },
        )

        updated = outcome.appointment
        if SideEffect.release_slot in outcome.side_effects:
            self._guard.release(updated.id)
        if SideEffect.refund_payment in outcome.side_effects:
            updated = self._refund(updated)
        return updated

    def _refund(self, appointment: Appointment) -> Appointment:
        payment = appointment.payment
        if not payment.transaction_id:
            self._logger.warning("Captured payment has no transaction id", extra={"appointment_id": appointment.id})
            return appointment
        try:
            refunded = self._payments.refund(payment.transaction_id, payment.amount)
        except PaymentGatewayError as e:
            self._logger.error("Refund request failed", extra={"appointment_id": appointment.id, "error": str(e)})
            return appointment
        if not refunded:
            self._logger.error("Refund rejected by provider", extra={"appointment_id": appointment.id})
            return appointment
        try:
            return self._appointments.update_payment(appointment.id, replace(payment, status=PaymentStatus.refunded))
        except PersistenceError as e:
            self._logger.error(
                "Refund issued but not recorded",
                extra={
                    "appointment_id": appointment.id,
                    "transaction_id": payment.transaction_id,
                    "error": str(e),
                },
            )
            return appointment
