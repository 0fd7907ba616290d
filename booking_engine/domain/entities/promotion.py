from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class DiscountType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"
    freebie = "freebie"


@dataclass(frozen=True)
class Promotion:
    id: str
    shop_id: str
    code: str
    discount_type: DiscountType
    value: Decimal
    starts_at: datetime
    ends_at: datetime
    title: str = ""
    eligible_service_ids: frozenset[str] = field(default_factory=frozenset)  # empty = every service
    usage_limit: int | None = None
    usage_count: int = 0
    usage_per_customer: int | None = None
    min_spend: Decimal = Decimal("0")
    max_discount: Decimal | None = None
    is_active: bool = True


def normalize_code(code: str) -> str:
    return code.strip().upper()
