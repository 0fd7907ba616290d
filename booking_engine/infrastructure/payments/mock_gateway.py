from __future__ import annotations

import logging
import threading
from decimal import Decimal

from booking_engine.application.ports.payment_gateway import ChargeResult, PaymentGatewayPort


class MockPaymentGateway(PaymentGatewayPort):
    def __init__(self, decline: bool = False) -> None:
        self.decline = decline
        self.charges: dict[str, Decimal] = {}
        self.refunds: dict[str, Decimal] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def charge(self, amount: Decimal, currency: str, reference: str, method: str) -> ChargeResult:
        if self.decline:
            return ChargeResult(success=False, reason="declined")
        with self._lock:
            transaction_id = f"mock_txn_{len(self.charges) + 1}"
            self.charges[transaction_id] = amount
        self._logger.info(
            "Mock payment captured",
            extra={"transaction_id": transaction_id, "amount": str(amount), "reference": reference},
        )
        return ChargeResult(success=True, transaction_id=transaction_id)

    def refund(self, transaction_id: str, amount: Decimal) -> bool:
        with self._lock:
            if transaction_id not in self.charges or transaction_id in self.refunds:
                return False
            self.refunds[transaction_id] = amount
        self._logger.info("Mock payment refunded", extra={"transaction_id": transaction_id})
        return True
