from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ChargeResult:
    success: bool
    transaction_id: str | None = None
    reason: str | None = None


class PaymentGatewayPort(ABC):
    @abstractmethod
    def charge(self, amount: Decimal, currency: str, reference: str, method: str) -> ChargeResult:
        """Capture a payment. Raises PaymentGatewayError when the provider is unreachable."""
        raise NotImplementedError

    @abstractmethod
    def refund(self, transaction_id: str, amount: Decimal) -> bool:
        """Refund a captured payment. Returns True if the provider accepted it."""
        raise NotImplementedError
