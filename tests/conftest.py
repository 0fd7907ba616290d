"""
Shared fixtures: a shop open 09:00-17:00 Monday to Saturday, pinned clock, in-memory stores.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from booking_engine.core.config import Settings
from booking_engine.domain.entities.appointment import (
    Appointment,
    AppointmentStatus,
    NoPromotion,
    Payment,
    PaymentMethod,
    PaymentStatus,
)
from booking_engine.domain.entities.promotion import DiscountType, Promotion
from booking_engine.domain.entities.service import Service
from booking_engine.domain.entities.shop import WEEKDAYS, OperatingHours, Shop
from booking_engine.infrastructure.catalog.catalog_store import CatalogStore
from booking_engine.infrastructure.clock import FixedClock
from booking_engine.infrastructure.payments.mock_gateway import MockPaymentGateway
from booking_engine.infrastructure.store.memory_appointments import MemoryAppointmentRepository
from booking_engine.infrastructure.store.memory_promotions import MemoryPromotionRepository
from booking_engine.wiring.dependencies import build_container

DAY = date(2030, 1, 7)  # Monday
NOW = datetime(2030, 1, 6, 12, 0, tzinfo=timezone.utc)  # the Sunday before

SHOP_ID = "shop_1"
OWNER_ID = "owner_1"
CUSTOMER_ID = "customer_1"


def weekly_hours(open_at: time = time(9, 0), close_at: time = time(17, 0)) -> tuple[OperatingHours, ...]:
    return tuple(
        OperatingHours(day=day, is_closed=True)
        if day == "Sunday"
        else OperatingHours(day=day, open=open_at, close=close_at)
        for day in WEEKDAYS
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def shop() -> Shop:
    return Shop(
        id=SHOP_ID,
        owner_id=OWNER_ID,
        name="Test Salon",
        timezone="UTC",
        auto_confirm=False,
        operating_hours=weekly_hours(),
    )


@pytest.fixture
def hour_service() -> Service:
    return Service(id="svc_60", shop_id=SHOP_ID, name="Facial", duration_minutes=60, base_price=Decimal("500"))


@pytest.fixture
def half_hour_service() -> Service:
    return Service(id="svc_30", shop_id=SHOP_ID, name="Haircut", duration_minutes=30, base_price=Decimal("300"))


@pytest.fixture
def catalog(shop, hour_service, half_hour_service) -> CatalogStore:
    return CatalogStore([shop], [hour_service, half_hour_service])


@pytest.fixture
def appointments() -> MemoryAppointmentRepository:
    return MemoryAppointmentRepository()


@pytest.fixture
def promotions() -> MemoryPromotionRepository:
    return MemoryPromotionRepository(
        [
            Promotion(
                id="promo_20",
                shop_id=SHOP_ID,
                code="SAVE20",
                title="20% off",
                discount_type=DiscountType.percentage,
                value=Decimal("20"),
                starts_at=NOW - timedelta(days=30),
                ends_at=NOW + timedelta(days=30),
            ),
            Promotion(
                id="promo_flat",
                shop_id=SHOP_ID,
                code="FLAT1000",
                title="Flat 1000 off",
                discount_type=DiscountType.fixed,
                value=Decimal("1000"),
                starts_at=NOW - timedelta(days=30),
                ends_at=NOW + timedelta(days=30),
            ),
            Promotion(
                id="promo_haircut",
                shop_id=SHOP_ID,
                code="CUTONLY",
                title="Haircut special",
                discount_type=DiscountType.fixed,
                value=Decimal("50"),
                starts_at=NOW - timedelta(days=30),
                ends_at=NOW + timedelta(days=30),
                eligible_service_ids=frozenset({"svc_30"}),
                usage_per_customer=1,
            ),
        ]
    )


@pytest.fixture
def payments() -> MockPaymentGateway:
    return MockPaymentGateway()


@pytest.fixture
def app_settings() -> Settings:
    return Settings(ENV="test", SEED_DEMO_DATA=False, STORE_PROVIDER="memory", SLOT_GRANULARITY_MINUTES=30)


@pytest.fixture
def container(app_settings, catalog, appointments, promotions, clock, payments):
    return build_container(
        config=app_settings,
        catalog=catalog,
        appointments=appointments,
        promotions=promotions,
        clock=clock,
        payments=payments,
    )


@pytest.fixture
def make_appointment():
    """Factory for stored appointments on DAY; pass overrides as keyword arguments."""

    def _make(start: time, end: time, status: AppointmentStatus = AppointmentStatus.confirmed, **overrides):
        price = overrides.pop("price", Decimal("500"))
        appointment = Appointment(
            id=overrides.pop("id", str(uuid.uuid4())),
            shop_id=SHOP_ID,
            service_id="svc_60",
            customer_id=CUSTOMER_ID,
            service_name="Facial",
            duration_minutes=(end.hour * 60 + end.minute) - (start.hour * 60 + start.minute),
            price=price,
            date=DAY,
            start_time=start,
            end_time=end,
            status=status,
            payment=Payment(method=PaymentMethod.offline, status=PaymentStatus.pending, amount=price),
            promotion=NoPromotion(),
            created_at=NOW,
            updated_at=NOW,
        )
        return replace(appointment, **overrides)

    return _make
