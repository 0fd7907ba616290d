from __future__ import annotations

import logging
from decimal import Decimal

import httpx

from booking_engine.application.exceptions import PaymentGatewayError
from booking_engine.application.ports.payment_gateway import ChargeResult, PaymentGatewayPort
from booking_engine.core.config import settings


def _minor_units(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value())


class HttpPaymentGateway(PaymentGatewayPort):
    """Payment provider reached over HTTP; amounts travel in minor units (paise)."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key or settings.PAYMENT_GATEWAY_API_KEY
        self._base_url = (base_url or settings.PAYMENT_GATEWAY_BASE_URL).rstrip("/")
        self._client = client or httpx.Client(timeout=timeout or settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

        if not self._api_key:
            raise ValueError("PAYMENT_GATEWAY_API_KEY is required for the HTTP payment gateway")

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}

    def charge(self, amount: Decimal, currency: str, reference: str, method: str) -> ChargeResult:
        payload = {
            "amount": _minor_units(amount),
            "currency": currency,
            "receipt": reference,
            "method": method,
        }
        try:
            response = self._client.post(f"{self._base_url}/payments", json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            self._logger.error("Payment request failed", extra={"reference": reference, "error": str(e)})
            raise PaymentGatewayError(str(e)) from e

        if response.status_code in (400, 402):
            data = _json_or_empty(response)
            reason = (data.get("error") or {}).get("description") or "declined"
            return ChargeResult(success=False, reason=reason)
        if response.is_error:
            raise PaymentGatewayError(f"Payment provider returned {response.status_code}")

        data = _json_or_empty(response)
        transaction_id = data.get("id")
        if not transaction_id:
            raise PaymentGatewayError("No transaction id returned by payment provider")
        status = data.get("status", "captured")
        if status not in ("captured", "authorized"):
            return ChargeResult(success=False, reason=status)

        self._logger.info("Payment captured", extra={"transaction_id": transaction_id, "reference": reference})
        return ChargeResult(success=True, transaction_id=str(transaction_id))

    def refund(self, transaction_id: str, amount: Decimal) -> bool:
        try:
            response = self._client.post(
                f"{self._base_url}/payments/{transaction_id}/refund",
                json={"amount": _minor_units(amount)},
                headers=self._headers(),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._logger.error(
                "Refund rejected",
                extra={"transaction_id": transaction_id, "status_code": e.response.status_code},
            )
            return False
        except httpx.HTTPError as e:
            raise PaymentGatewayError(str(e)) from e

        self._logger.info("Payment refunded", extra={"transaction_id": transaction_id})
        return True


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
