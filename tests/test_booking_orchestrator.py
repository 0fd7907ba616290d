"""
Tests for the end-to-end booking flow.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date, time
from decimal import Decimal

import pytest

from booking_engine.application.exceptions import NotFoundError, PersistenceError
from booking_engine.application.results import PromotionRejectionReason, Rejected, RejectionKind, Reservation
from booking_engine.application.use_cases.book_appointment import BookingRequest, idempotency_token
from booking_engine.domain.entities.appointment import (
    AppliedPromotion,
    Appointment,
    AppointmentStatus,
    NoPromotion,
    PaymentMethod,
    PaymentStatus,
)
from booking_engine.domain.entities.time_slot import TimeSlot
from booking_engine.infrastructure.payments.mock_gateway import MockPaymentGateway
from booking_engine.infrastructure.store.memory_appointments import MemoryAppointmentRepository
from booking_engine.wiring.dependencies import build_container

from conftest import CUSTOMER_ID, DAY

TEN_TO_ELEVEN = TimeSlot(time(10, 0), time(11, 0))


class FailingAppointmentRepository(MemoryAppointmentRepository):
    def add(self, appointment: Appointment) -> None:
        raise PersistenceError("disk full")


def request(**overrides) -> BookingRequest:
    base = BookingRequest(
        customer_id=CUSTOMER_ID,
        shop_id="shop_1",
        service_id="svc_60",
        date=DAY,
        slot=TEN_TO_ELEVEN,
        payment_method=PaymentMethod.offline,
    )
    return replace(base, **overrides)


def labels(slots):
    return [f"{s.start:%H:%M}-{s.end:%H:%M}" for s in slots]


def test_books_pending_appointment_with_full_price(container, appointments):
    result = container.orchestrator.book(request(notes="window seat"))

    assert isinstance(result, Appointment)
    assert result.status == AppointmentStatus.pending
    assert result.price == Decimal("500")
    assert result.payment.amount == Decimal("500")
    assert result.payment.status == PaymentStatus.pending
    assert isinstance(result.promotion, NoPromotion)
    assert result.notes == "window seat"
    assert appointments.get(result.id) == result


def test_auto_confirm_shop_starts_confirmed(container, catalog, shop):
    catalog.add_shop(replace(shop, auto_confirm=True))
    result = container.orchestrator.book(request())
    assert result.status == AppointmentStatus.confirmed


def test_same_request_twice_creates_one_appointment(container, appointments):
    first = container.orchestrator.book(request())
    second = container.orchestrator.book(request())

    assert isinstance(first, Appointment)
    assert second.id == first.id
    assert len(appointments.list_for_customer(CUSTOMER_ID)) == 1


def test_concurrent_duplicates_create_one_appointment(container, appointments):
    barrier = threading.Barrier(6)

    def attempt(_):
        barrier.wait()
        return container.orchestrator.book(request())

    with ThreadPoolExecutor(max_workers=6) as pool:
        results = list(pool.map(attempt, range(6)))

    assert {r.id for r in results} == {results[0].id}
    assert len(appointments.list_for_shop("shop_1")) == 1


def test_different_client_keys_are_different_bookings():
    a = idempotency_token(request(idempotency_key="one"))
    b = idempotency_token(request(idempotency_key="two"))
    assert a != b
    assert a == idempotency_token(request(idempotency_key="one"))


def test_racing_customers_get_one_booking(container, appointments):
    barrier = threading.Barrier(8)

    def attempt(i):
        barrier.wait()
        return container.orchestrator.book(request(customer_id=f"customer_{i}"))

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(attempt, range(8)))

    winners = [r for r in results if isinstance(r, Appointment)]
    losers = [r for r in results if isinstance(r, Rejected)]
    assert len(winners) == 1
    assert {r.kind for r in losers} <= {RejectionKind.slot_taken, RejectionKind.slot_no_longer_valid}
    assert len(appointments.list_for_shop("shop_1")) == 1


def test_booked_slot_disappears_from_availability(container, appointments, make_appointment):
    appointments.add(make_appointment(time(9, 30), time(10, 0)))
    ten_thirty = TimeSlot(time(10, 0), time(10, 30))

    before = labels(container.availability.available_slots("shop_1", "svc_30", DAY))
    booked = container.orchestrator.book(request(service_id="svc_30", slot=ten_thirty))
    after = labels(container.availability.available_slots("shop_1", "svc_30", DAY))

    assert isinstance(booked, Appointment)
    assert before[:2] == ["09:00-09:30", "10:00-10:30"]
    assert "10:00-10:30" not in after
    assert len(after) == len(before) - 1


def test_slot_not_offered_is_no_longer_valid(container):
    wrong_length = container.orchestrator.book(request(slot=TimeSlot(time(10, 0), time(10, 30))))
    off_grid = container.orchestrator.book(request(slot=TimeSlot(time(10, 10), time(11, 10))))
    sunday = container.orchestrator.book(request(date=date(2030, 1, 13)))
    after_close = container.orchestrator.book(request(slot=TimeSlot(time(16, 30), time(17, 30))))

    for result in (wrong_length, off_grid, sunday, after_close):
        assert isinstance(result, Rejected)
        assert result.kind == RejectionKind.slot_no_longer_valid


def test_unknown_service_raises(container):
    with pytest.raises(NotFoundError):
        container.orchestrator.book(request(service_id="missing"))


def test_coupon_discount_is_settled_and_counted_once(container, promotions):
    result = container.orchestrator.book(request(coupon_code="save20"))

    assert isinstance(result.promotion, AppliedPromotion)
    assert result.promotion.code == "SAVE20"
    assert result.promotion.discount == Decimal("100.00")
    assert result.payment.amount == Decimal("400.00")
    assert promotions.get("promo_20").usage_count == 1

    container.orchestrator.book(request(coupon_code="save20"))
    assert promotions.get("promo_20").usage_count == 1


def test_rejected_coupon_books_nothing(container, appointments, promotions):
    result = container.orchestrator.book(request(coupon_code="CUTONLY"))

    assert result.kind == RejectionKind.promotion_rejected
    assert result.promotion_reason == PromotionRejectionReason.service_not_eligible
    assert appointments.list_for_shop("shop_1") == []
    assert isinstance(container.guard.reserve("shop_1", DAY, TEN_TO_ELEVEN, "check"), Reservation)


def test_online_payment_is_captured(container, payments):
    result = container.orchestrator.book(request(payment_method=PaymentMethod.online))

    assert result.payment.status == PaymentStatus.completed
    assert result.payment.transaction_id in payments.charges
    assert payments.charges[result.payment.transaction_id] == Decimal("500")


def test_fully_discounted_online_booking_is_not_charged(container, payments):
    result = container.orchestrator.book(request(payment_method=PaymentMethod.online, coupon_code="FLAT1000"))

    assert result.payment.amount == Decimal("0")
    assert payments.charges == {}


def test_declined_payment_releases_slot_and_coupon(app_settings, catalog, appointments, promotions, clock):
    container = build_container(
        config=app_settings,
        catalog=catalog,
        appointments=appointments,
        promotions=promotions,
        clock=clock,
        payments=MockPaymentGateway(decline=True),
    )

    result = container.orchestrator.book(request(payment_method=PaymentMethod.wallet, coupon_code="SAVE20"))

    assert result.kind == RejectionKind.payment_declined
    assert promotions.get("promo_20").usage_count == 0
    assert appointments.list_for_shop("shop_1") == []
    assert isinstance(container.guard.reserve("shop_1", DAY, TEN_TO_ELEVEN, "check"), Reservation)


def test_persistence_failure_runs_every_compensation(app_settings, catalog, promotions, clock, payments):
    container = build_container(
        config=app_settings,
        catalog=catalog,
        appointments=FailingAppointmentRepository(),
        promotions=promotions,
        clock=clock,
        payments=payments,
    )

    result = container.orchestrator.book(request(payment_method=PaymentMethod.online, coupon_code="SAVE20"))

    assert result.kind == RejectionKind.persistence_failure
    assert promotions.get("promo_20").usage_count == 0
    assert list(payments.refunds) == list(payments.charges)
    assert isinstance(container.guard.reserve("shop_1", DAY, TEN_TO_ELEVEN, "check"), Reservation)


def test_retry_after_persistence_failure_starts_fresh(app_settings, catalog, promotions, clock, payments):
    repository = FailingAppointmentRepository()
    container = build_container(
        config=app_settings,
        catalog=catalog,
        appointments=repository,
        promotions=promotions,
        clock=clock,
        payments=payments,
    )
    assert container.orchestrator.book(request()).kind == RejectionKind.persistence_failure

    repository.add = lambda appointment: MemoryAppointmentRepository.add(repository, appointment)
    result = container.orchestrator.book(request())

    assert isinstance(result, Appointment)
    assert repository.get(result.id) == result


def test_rebooking_after_cancel_creates_a_new_appointment(container, appointments):
    """Test that a cancelled booking does not answer a later request for the same slot."""
    first = container.orchestrator.book(request())
    container.status_updates.execute(first.id, AppointmentStatus.cancelled, CUSTOMER_ID)

    second = container.orchestrator.book(request())

    assert isinstance(second, Appointment)
    assert second.id != first.id
    assert second.status == AppointmentStatus.pending
    assert appointments.get(first.id).status == AppointmentStatus.cancelled
    assert [a.id for a in appointments.list_non_terminal()] == [second.id]

    assert container.orchestrator.book(request()).id == second.id
