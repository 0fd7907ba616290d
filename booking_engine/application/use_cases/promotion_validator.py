from __future__ import annotations

import logging
from decimal import ROUND_DOWN, Decimal
from typing import Iterable

from booking_engine.application.ports.clock import ClockPort
from booking_engine.application.ports.promotion_repository import PromotionRepositoryPort
from booking_engine.application.results import Accepted, PromotionRejected, PromotionRejectionReason
from booking_engine.domain.entities.promotion import DiscountType, Promotion, normalize_code

CURRENCY_UNIT = Decimal("0.01")


class PromotionValidator:
    """
    Decides whether a coupon would apply to an order and what it is worth.

    Evaluation is side-effect free: usage counters are consumed by the
    booking flow only once the booking goes through.
    """

    def __init__(self, promotions: PromotionRepositoryPort, clock: ClockPort) -> None:
        self._promotions = promotions
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def evaluate(
        self,
        shop_id: str,
        code: str,
        service_ids: Iterable[str],
        subtotal: Decimal,
        customer_id: str | None = None,
    ) -> Accepted | PromotionRejected:
        subtotal = Decimal(subtotal)
        promotion = self._promotions.get_by_code(shop_id, normalize_code(code))
        if promotion is None or not promotion.is_active:
            return self._reject(PromotionRejectionReason.not_found, "Invalid coupon code or promotion is not active", code)

        now = self._clock.now()
        if now < promotion.starts_at:
            return self._reject(PromotionRejectionReason.not_yet_active, "Coupon code is not active yet", code)
        if now > promotion.ends_at:
            return self._reject(PromotionRejectionReason.expired, "Coupon code has expired", code)

        if promotion.eligible_service_ids and not promotion.eligible_service_ids.intersection(service_ids):
            return self._reject(
                PromotionRejectionReason.service_not_eligible,
                "This coupon is not applicable for any of the selected services",
                code,
            )

        if promotion.usage_limit is not None and promotion.usage_count >= promotion.usage_limit:
            return self._reject(
                PromotionRejectionReason.usage_limit_reached, "This promotion has reached its usage limit", code
            )
        if customer_id and promotion.usage_per_customer is not None:
            if self._promotions.customer_usage(promotion.id, customer_id) >= promotion.usage_per_customer:
                return self._reject(
                    PromotionRejectionReason.usage_limit_reached,
                    "You have already used this promotion the maximum number of times",
                    code,
                )

        if subtotal < promotion.min_spend:
            return self._reject(
                PromotionRejectionReason.minimum_spend_not_met,
                f"Minimum spend of {promotion.min_spend:.2f} required for this coupon",
                code,
            )

        return Accepted(discount=compute_discount(promotion, subtotal), promotion=promotion)

    def active_promotions(self, shop_id: str) -> list[Promotion]:
        now = self._clock.now()
        return [
            promotion
            for promotion in self._promotions.list_for_shop(shop_id)
            if promotion.is_active and promotion.starts_at <= now <= promotion.ends_at
        ]

    def _reject(self, reason: PromotionRejectionReason, message: str, code: str) -> PromotionRejected:
        self._logger.info("Promotion rejected", extra={"coupon_code": code, "reason": reason.value})
        return PromotionRejected(reason=reason, message=message)


def compute_discount(promotion: Promotion, subtotal: Decimal) -> Decimal:
    """Discount rounded down to the currency unit and never above `subtotal`."""
    if promotion.discount_type == DiscountType.percentage:
        discount = subtotal * promotion.value / Decimal(100)
        if promotion.max_discount is not None:
            discount = min(discount, promotion.max_discount)
    elif promotion.discount_type == DiscountType.fixed:
        discount = promotion.value
    else:
        discount = Decimal("0")

    discount = max(Decimal("0"), min(discount, subtotal))
    return discount.quantize(CURRENCY_UNIT, rounding=ROUND_DOWN)
