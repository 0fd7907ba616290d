from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum

from booking_engine.domain.entities.time_slot import TimeSlot


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"
    rejected = "rejected"
    no_show = "no-show"

    @property
    def is_terminal(self) -> bool:
        return self not in NON_TERMINAL_STATUSES


NON_TERMINAL_STATUSES = frozenset({AppointmentStatus.pending, AppointmentStatus.confirmed})


class Actor(str, Enum):
    customer = "customer"
    shop_owner = "shop_owner"


class PaymentMethod(str, Enum):
    online = "online"
    wallet = "wallet"
    offline = "offline"


class PaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


@dataclass(frozen=True)
class Payment:
    method: PaymentMethod
    status: PaymentStatus
    amount: Decimal
    transaction_id: str | None = None


@dataclass(frozen=True)
class NoPromotion:
    @property
    def discount(self) -> Decimal:
        return Decimal("0")


@dataclass(frozen=True)
class AppliedPromotion:
    promotion_id: str
    code: str
    discount: Decimal


@dataclass(frozen=True)
class Appointment:
    id: str
    shop_id: str
    service_id: str
    customer_id: str
    service_name: str
    duration_minutes: int
    price: Decimal
    date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    payment: Payment
    promotion: NoPromotion | AppliedPromotion
    created_at: datetime
    updated_at: datetime
    notes: str | None = None
    review_eligible: bool = False
    idempotency_token: str | None = None

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot(self.start_time, self.end_time)

    @property
    def occupies_slot(self) -> bool:
        return self.status in NON_TERMINAL_STATUSES
