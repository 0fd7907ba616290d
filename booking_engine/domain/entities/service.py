from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Service:
    id: str
    shop_id: str
    name: str
    duration_minutes: int
    base_price: Decimal
    discounted_price: Decimal | None = None
    is_active: bool = True

    @property
    def price(self) -> Decimal:
        """Price charged at booking time."""
        if self.discounted_price is not None:
            return self.discounted_price
        return self.base_price
