from __future__ import annotations

from datetime import datetime, time, timezone
from decimal import Decimal

from booking_engine.domain.entities.promotion import DiscountType, Promotion
from booking_engine.domain.entities.service import Service
from booking_engine.domain.entities.shop import WEEKDAYS, OperatingHours, Shop

DEMO_SHOPS = [
    Shop(
        id="shop_glow_studio",
        owner_id="owner_glow",
        name="Glow Beauty Studio",
        timezone="Asia/Kolkata",
        auto_confirm=False,
        operating_hours=tuple(
            OperatingHours(day=day, open=time(9, 0), close=time(17, 0))
            if day != "Sunday"
            else OperatingHours(day=day, is_closed=True)
            for day in WEEKDAYS
        ),
    ),
    Shop(
        id="shop_iron_gym",
        owner_id="owner_iron",
        name="Iron Temple Gym",
        timezone="Asia/Kolkata",
        auto_confirm=True,
        operating_hours=tuple(OperatingHours(day=day, open=time(6, 0), close=time(21, 0)) for day in WEEKDAYS),
    ),
]

DEMO_SERVICES = [
    Service(
        id="svc_haircut",
        shop_id="shop_glow_studio",
        name="Haircut & Styling",
        duration_minutes=30,
        base_price=Decimal("500"),
    ),
    Service(
        id="svc_facial",
        shop_id="shop_glow_studio",
        name="Deep Cleansing Facial",
        duration_minutes=60,
        base_price=Decimal("1500"),
        discounted_price=Decimal("1200"),
    ),
    Service(
        id="svc_personal_training",
        shop_id="shop_iron_gym",
        name="Personal Training Session",
        duration_minutes=60,
        base_price=Decimal("800"),
    ),
]

DEMO_PROMOTIONS = [
    Promotion(
        id="promo_glow20",
        shop_id="shop_glow_studio",
        code="GLOW20",
        title="20% off any service",
        discount_type=DiscountType.percentage,
        value=Decimal("20"),
        starts_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ends_at=datetime(2030, 12, 31, tzinfo=timezone.utc),
        usage_limit=500,
        max_discount=Decimal("400"),
    ),
    Promotion(
        id="promo_firstcut",
        shop_id="shop_glow_studio",
        code="FIRSTCUT",
        title="Flat 100 off your first haircut",
        discount_type=DiscountType.fixed,
        value=Decimal("100"),
        starts_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ends_at=datetime(2030, 12, 31, tzinfo=timezone.utc),
        eligible_service_ids=frozenset({"svc_haircut"}),
        usage_per_customer=1,
    ),
]
