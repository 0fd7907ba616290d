from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable

from booking_engine.application.exceptions import NotFoundError, PaymentGatewayError, PersistenceError
from booking_engine.application.ports.appointment_repository import AppointmentRepositoryPort
from booking_engine.application.ports.catalog import CatalogPort
from booking_engine.application.ports.clock import ClockPort
from booking_engine.application.ports.idempotency_store import IdempotencyStorePort
from booking_engine.application.ports.payment_gateway import PaymentGatewayPort
from booking_engine.application.ports.promotion_repository import PromotionRepositoryPort
from booking_engine.application.results import (
    Accepted,
    PromotionRejected,
    PromotionRejectionReason,
    Rejected,
    RejectionKind,
    SlotTaken,
)
from booking_engine.application.use_cases.appointment_state_machine import AppointmentStateMachine
from booking_engine.application.use_cases.booking_conflict_guard import BookingConflictGuard
from booking_engine.application.use_cases.promotion_validator import PromotionValidator
from booking_engine.application.use_cases.slot_availability import SlotAvailabilityCalculator
from booking_engine.domain.entities.appointment import (
    AppliedPromotion,
    Appointment,
    NoPromotion,
    Payment,
    PaymentMethod,
    PaymentStatus,
)
from booking_engine.domain.entities.time_slot import TimeSlot

CHARGED_METHODS = frozenset({PaymentMethod.online, PaymentMethod.wallet})


@dataclass(frozen=True)
class BookingRequest:
    customer_id: str
    shop_id: str
    service_id: str
    date: date
    slot: TimeSlot
    payment_method: PaymentMethod
    notes: str | None = None
    coupon_code: str | None = None
    idempotency_key: str | None = None


def idempotency_token(request: BookingRequest) -> str:
    """Stable token for retries of the same booking by the same customer."""
    parts = [
        request.customer_id,
        request.shop_id,
        request.service_id,
        request.date.isoformat(),
        f"{request.slot.start:%H:%M}",
        f"{request.slot.end:%H:%M}",
        request.idempotency_key or "",
    ]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


class _Compensations:
    """Undo steps recorded after the slot claim, run newest first on failure."""

    def __init__(self, logger: logging.Logger) -> None:
        self._steps: list[tuple[str, Callable[[], object]]] = []
        self._logger = logger

    def add(self, name: str, step: Callable[[], object]) -> None:
        self._steps.append((name, step))

    def run(self, appointment_id: str) -> None:
        for name, step in reversed(self._steps):
            try:
                step()
            except Exception as e:
                self._logger.error(
                    "Compensation step failed",
                    extra={"appointment_id": appointment_id, "step": name, "error": str(e)},
                )
        self._steps.clear()


class BookingOrchestrator:
    def __init__(
        self,
        catalog: CatalogPort,
        appointments: AppointmentRepositoryPort,
        promotions: PromotionRepositoryPort,
        availability: SlotAvailabilityCalculator,
        validator: PromotionValidator,
        guard: BookingConflictGuard,
        state_machine: AppointmentStateMachine,
        payments: PaymentGatewayPort,
        idempotency: IdempotencyStorePort,
        clock: ClockPort,
        currency: str = "INR",
    ) -> None:
        self._catalog = catalog
        self._appointments = appointments
        self._promotions = promotions
        self._availability = availability
        self._validator = validator
        self._guard = guard
        self._state_machine = state_machine
        self._payments = payments
        self._idempotency = idempotency
        self._clock = clock
        self._currency = currency
        self._logger = logging.getLogger(__name__)

    def book(self, request: BookingRequest) -> Appointment | Rejected:
        token = idempotency_token(request)
        with self._idempotency.hold(token):
            existing = self._existing_booking(token)
            if existing is not None:
                self._logger.info(
                    "Duplicate booking request answered from idempotency store",
                    extra={"appointment_id": existing.id, "customer_id": request.customer_id},
                )
                return existing
            return self._book(request, token)

    def _existing_booking(self, token: str) -> Appointment | None:
        appointment_id = self._idempotency.get(token)
        if appointment_id is None:
            return None
        appointment = self._appointments.get(appointment_id)
        # only a booking that still holds its slot answers a retry
        if appointment is None or not appointment.occupies_slot:
            self._idempotency.forget(token)
            return None
        return appointment

    def _book(self, request: BookingRequest, token: str) -> Appointment | Rejected:
        shop = self._catalog.get_shop(request.shop_id)
        if shop is None:
            raise NotFoundError("Shop not found")
        service = self._catalog.get_service(request.service_id)
        if service is None or service.shop_id != shop.id:
            raise NotFoundError("Service not found")

        if request.slot.duration_minutes != service.duration_minutes:
            return self._rejected(
                RejectionKind.slot_no_longer_valid,
                "Selected time slot does not match the service duration",
                request,
            )
        if request.slot not in self._availability.slots_for(shop, service, request.date):
            return self._rejected(
                RejectionKind.slot_no_longer_valid, "Selected time slot is not available", request
            )

        subtotal = service.price
        evaluation: Accepted | None = None
        if request.coupon_code:
            result = self._validator.evaluate(
                shop.id, request.coupon_code, [service.id], subtotal, customer_id=request.customer_id
            )
            if isinstance(result, PromotionRejected):
                return self._rejected(
                    RejectionKind.promotion_rejected, result.message, request, promotion_reason=result.reason
                )
            evaluation = result

        appointment_id = str(uuid.uuid4())
        reservation = self._guard.reserve(shop.id, request.date, request.slot, appointment_id)
        if isinstance(reservation, SlotTaken):
            return self._rejected(
                RejectionKind.slot_taken, "Selected time slot was just booked by someone else", request
            )

        compensations = _Compensations(self._logger)
        compensations.add("release_slot", lambda: self._guard.release(reservation))
        try:
            promotion: NoPromotion | AppliedPromotion = NoPromotion()
            if evaluation is not None:
                promo = evaluation.promotion
                if not self._promotions.try_increment_usage(promo.id, request.customer_id):
                    compensations.run(appointment_id)
                    return self._rejected(
                        RejectionKind.promotion_rejected,
                        "This promotion has reached its usage limit",
                        request,
                        promotion_reason=PromotionRejectionReason.usage_limit_reached,
                    )
                compensations.add(
                    "release_promotion_usage",
                    lambda: self._promotions.release_usage(promo.id, request.customer_id),
                )
                promotion = AppliedPromotion(promotion_id=promo.id, code=promo.code, discount=evaluation.discount)

            amount = subtotal - promotion.discount
            payment = self._collect_payment(request.payment_method, amount, appointment_id, compensations)
            if payment is None:
                compensations.run(appointment_id)
                return self._rejected(RejectionKind.payment_declined, "Payment was declined", request)

            now = self._clock.now()
            appointment = Appointment(
                id=appointment_id,
                shop_id=shop.id,
                service_id=service.id,
                customer_id=request.customer_id,
                service_name=service.name,
                duration_minutes=service.duration_minutes,
                price=subtotal,
                date=request.date,
                start_time=request.slot.start,
                end_time=request.slot.end,
                status=self._state_machine.initial_status(shop),
                payment=payment,
                promotion=promotion,
                created_at=now,
                updated_at=now,
                notes=request.notes,
                idempotency_token=token,
            )
            self._appointments.add(appointment)
        except PersistenceError as e:
            self._logger.error(
                "Appointment could not be persisted",
                extra={"appointment_id": appointment_id, "shop_id": shop.id, "error": str(e)},
            )
            compensations.run(appointment_id)
            return self._rejected(
                RejectionKind.persistence_failure, "Booking could not be saved, please retry", request
            )
        except PaymentGatewayError as e:
            self._logger.error(
                "Payment provider unavailable",
                extra={"appointment_id": appointment_id, "shop_id": shop.id, "error": str(e)},
            )
            compensations.run(appointment_id)
            return self._rejected(
                RejectionKind.persistence_failure, "Payment provider unavailable, please retry", request
            )
        except Exception:
            compensations.run(appointment_id)
            raise

        self._idempotency.remember(token, appointment.id)
        self._logger.info(
            "Appointment booked",
            extra={
                "appointment_id": appointment.id,
                "shop_id": shop.id,
                "customer_id": request.customer_id,
                "status": appointment.status.value,
            },
        )
        return appointment

    def _collect_payment(
        self,
        method: PaymentMethod,
        amount: Decimal,
        appointment_id: str,
        compensations: _Compensations,
    ) -> Payment | None:
        if method not in CHARGED_METHODS or amount <= 0:
            return Payment(method=method, status=PaymentStatus.pending, amount=amount)

        charge = self._payments.charge(amount, self._currency, appointment_id, method.value)
        if not charge.success:
            self._logger.info(
                "Payment declined", extra={"appointment_id": appointment_id, "reason": charge.reason}
            )
            return None
        if charge.transaction_id:
            transaction_id = charge.transaction_id
            compensations.add("refund_payment", lambda: self._payments.refund(transaction_id, amount))
        return Payment(
            method=method,
            status=PaymentStatus.completed,
            amount=amount,
            transaction_id=charge.transaction_id,
        )

    def _rejected(
        self,
        kind: RejectionKind,
        message: str,
        request: BookingRequest,
        promotion_reason: PromotionRejectionReason | None = None,
    ) -> Rejected:
        self._logger.info(
            "Booking rejected",
            extra={
                "shop_id": request.shop_id,
                "customer_id": request.customer_id,
                "reason": promotion_reason.value if promotion_reason else kind.value,
            },
        )
        return Rejected(kind=kind, message=message, promotion_reason=promotion_reason)
