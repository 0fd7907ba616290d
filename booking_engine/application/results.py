from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from booking_engine.domain.entities.promotion import Promotion
from booking_engine.domain.entities.time_slot import TimeSlot


class RejectionKind(str, Enum):
    slot_taken = "SlotTaken"
    slot_no_longer_valid = "SlotNoLongerValid"
    promotion_rejected = "PromotionRejected"
    payment_declined = "PaymentDeclined"
    persistence_failure = "PersistenceFailure"


class PromotionRejectionReason(str, Enum):
    not_found = "NotFound"
    expired = "Expired"
    not_yet_active = "NotYetActive"
    service_not_eligible = "ServiceNotEligible"
    usage_limit_reached = "UsageLimitReached"
    minimum_spend_not_met = "MinimumSpendNotMet"


@dataclass(frozen=True)
class Reservation:
    holder_id: str
    shop_id: str
    date: date
    slot: TimeSlot


@dataclass(frozen=True)
class SlotTaken:
    shop_id: str
    date: date
    slot: TimeSlot


@dataclass(frozen=True)
class Accepted:
    discount: Decimal
    promotion: Promotion


@dataclass(frozen=True)
class PromotionRejected:
    reason: PromotionRejectionReason
    message: str


@dataclass(frozen=True)
class Rejected:
    kind: RejectionKind
    message: str
    promotion_reason: PromotionRejectionReason | None = None
