"""
Tests for the HTTP payment gateway adapter, using httpx's mock transport.
"""

from __future__ import annotations

import json
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import time
from decimal import Decimal

import httpx
import pytest

from booking_engine.application.exceptions import PaymentGatewayError
from booking_engine.application.results import RejectionKind, Reservation
from booking_engine.application.use_cases.book_appointment import BookingRequest
from booking_engine.domain.entities.appointment import PaymentMethod
from booking_engine.domain.entities.time_slot import TimeSlot
from booking_engine.infrastructure.payments.gateway_client import HttpPaymentGateway
from booking_engine.infrastructure.payments.mock_gateway import MockPaymentGateway
from booking_engine.wiring.dependencies import build_container

from conftest import CUSTOMER_ID, DAY


def gateway(handler) -> HttpPaymentGateway:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpPaymentGateway(api_key="sk_test", base_url="https://pay.example/v1/", client=client)


def test_charge_sends_minor_units_and_returns_transaction():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "pay_1", "status": "captured"})

    result = gateway(handler).charge(Decimal("400.50"), "INR", "appt_1", "online")

    assert result.success and result.transaction_id == "pay_1"
    assert seen["url"] == "https://pay.example/v1/payments"
    assert seen["auth"] == "Bearer sk_test"
    assert seen["body"] == {"amount": 40050, "currency": "INR", "receipt": "appt_1", "method": "online"}


def test_decline_is_a_result_not_an_error():
    def handler(request):
        return httpx.Response(402, json={"error": {"description": "insufficient funds"}})

    result = gateway(handler).charge(Decimal("10"), "INR", "appt_1", "wallet")

    assert not result.success
    assert result.reason == "insufficient funds"


def test_provider_outage_raises():
    def server_error(request):
        return httpx.Response(503)

    def unreachable(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(PaymentGatewayError):
        gateway(server_error).charge(Decimal("10"), "INR", "appt_1", "online")
    with pytest.raises(PaymentGatewayError):
        gateway(unreachable).charge(Decimal("10"), "INR", "appt_1", "online")


def test_refund_outcomes():
    assert gateway(lambda request: httpx.Response(200, json={"id": "rfnd_1"})).refund("pay_1", Decimal("5"))
    assert not gateway(lambda request: httpx.Response(400)).refund("pay_1", Decimal("5"))


def test_api_key_is_required():
    with pytest.raises(ValueError):
        HttpPaymentGateway(api_key="", base_url="https://pay.example/v1", client=httpx.Client())


def test_gateway_outage_during_booking_is_retryable(app_settings, catalog, appointments, promotions, clock):
    container = build_container(
        config=app_settings,
        catalog=catalog,
        appointments=appointments,
        promotions=promotions,
        clock=clock,
        payments=gateway(lambda request: httpx.Response(500)),
    )
    slot = TimeSlot(time(10, 0), time(11, 0))

    result = container.orchestrator.book(
        BookingRequest(
            customer_id=CUSTOMER_ID,
            shop_id="shop_1",
            service_id="svc_60",
            date=DAY,
            slot=slot,
            payment_method=PaymentMethod.online,
        )
    )

    assert result.kind == RejectionKind.persistence_failure
    assert appointments.list_for_shop("shop_1") == []
    assert isinstance(container.guard.reserve("shop_1", DAY, slot, "check"), Reservation)


def test_mock_gateway_issues_unique_ids_under_concurrency():
    mock = MockPaymentGateway()
    barrier = threading.Barrier(16)

    def charge(i):
        barrier.wait()
        return mock.charge(Decimal("10"), "INR", f"appt_{i}", "online").transaction_id

    with ThreadPoolExecutor(max_workers=16) as pool:
        ids = list(pool.map(charge, range(16)))

    assert len(set(ids)) == 16
    assert len(mock.charges) == 16
