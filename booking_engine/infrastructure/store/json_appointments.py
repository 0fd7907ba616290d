from __future__ import annotations

import json
import threading
from dataclasses import replace
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any

from booking_engine.application.exceptions import NotFoundError, PersistenceError
from booking_engine.application.ports.appointment_repository import AppointmentRepositoryPort
from booking_engine.domain.entities.appointment import (
    AppliedPromotion,
    Appointment,
    AppointmentStatus,
    NoPromotion,
    Payment,
    PaymentMethod,
    PaymentStatus,
)


class JsonAppointmentRepository(AppointmentRepositoryPort):
    """
    File-backed appointment store for local development.

    Everything lives in one JSON document that is rewritten atomically
    (temp file + rename) under a process-wide lock on every write.
    """

    def __init__(self, data_dir: str = "./data") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._file_path = self._data_dir / "appointments.json"
        self._lock = threading.Lock()
        self._appointments: dict[str, Appointment] = self._load()

    def _load(self) -> dict[str, Appointment]:
        if not self._file_path.exists():
            return {}
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise PersistenceError(f"Cannot read {self._file_path}: {e}") from e
        appointments = (self._deserialize(item) for item in data.get("appointments", []))
        return {a.id: a for a in appointments}

    def _save(self, appointments: dict[str, Appointment]) -> None:
        temp_path = self._file_path.with_suffix(".json.tmp")
        payload = {"version": 1, "appointments": [self._serialize(a) for a in appointments.values()]}
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            temp_path.replace(self._file_path)
        except OSError as e:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass
            raise PersistenceError(f"Cannot write {self._file_path}: {e}") from e

    def _write(self, appointment: Appointment) -> None:
        # caller holds self._lock; memory only changes once the file is written
        updated = dict(self._appointments)
        updated[appointment.id] = appointment
        self._save(updated)
        self._appointments = updated

    def add(self, appointment: Appointment) -> None:
        with self._lock:
            if appointment.id in self._appointments:
                raise PersistenceError(f"Appointment {appointment.id} already exists")
            self._write(appointment)

    def get(self, appointment_id: str) -> Appointment | None:
        with self._lock:
            return self._appointments.get(appointment_id)

    def list_for_shop_date(self, shop_id: str, day: date) -> list[Appointment]:
        with self._lock:
            return [a for a in self._appointments.values() if a.shop_id == shop_id and a.date == day]

    def list_for_shop(self, shop_id: str) -> list[Appointment]:
        with self._lock:
            return [a for a in self._appointments.values() if a.shop_id == shop_id]

    def list_for_customer(self, customer_id: str) -> list[Appointment]:
        with self._lock:
            return [a for a in self._appointments.values() if a.customer_id == customer_id]

    def list_non_terminal(self) -> list[Appointment]:
        with self._lock:
            return [a for a in self._appointments.values() if a.occupies_slot]

    def compare_and_set(self, appointment_id: str, expected_status: AppointmentStatus, updated: Appointment) -> bool:
        with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None or current.status != expected_status:
                return False
            self._write(updated)
            return True

    def update_payment(self, appointment_id: str, payment: Payment) -> Appointment:
        with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None:
                raise NotFoundError("Appointment not found")
            updated = replace(current, payment=payment)
            self._write(updated)
            return updated

    def _serialize(self, appointment: Appointment) -> dict[str, Any]:
        """Serialize Appointment to dict with ISO strings and decimal strings."""
        promotion: dict[str, Any] | None = None
        if isinstance(appointment.promotion, AppliedPromotion):
            promotion = {
                "promotion_id": appointment.promotion.promotion_id,
                "code": appointment.promotion.code,
                "discount": str(appointment.promotion.discount),
            }
        return {
            "id": appointment.id,
            "shop_id": appointment.shop_id,
            "service_id": appointment.service_id,
            "customer_id": appointment.customer_id,
            "service_name": appointment.service_name,
            "duration_minutes": appointment.duration_minutes,
            "price": str(appointment.price),
            "date": appointment.date.isoformat(),
            "start_time": appointment.start_time.strftime("%H:%M"),
            "end_time": appointment.end_time.strftime("%H:%M"),
            "status": appointment.status.value,
            "payment": {
                "method": appointment.payment.method.value,
                "status": appointment.payment.status.value,
                "amount": str(appointment.payment.amount),
                "transaction_id": appointment.payment.transaction_id,
            },
            "promotion": promotion,
            "notes": appointment.notes,
            "created_at": appointment.created_at.isoformat(),
            "updated_at": appointment.updated_at.isoformat(),
            "review_eligible": appointment.review_eligible,
            "idempotency_token": appointment.idempotency_token,
        }

    def _deserialize(self, data: dict[str, Any]) -> Appointment:
        """Deserialize dict to Appointment."""
        payment_data = data["payment"]
        promotion_data = data.get("promotion")
        promotion: NoPromotion | AppliedPromotion = NoPromotion()
        if promotion_data:
            promotion = AppliedPromotion(
                promotion_id=promotion_data["promotion_id"],
                code=promotion_data["code"],
                discount=Decimal(promotion_data["discount"]),
            )
        return Appointment(
            id=data["id"],
            shop_id=data["shop_id"],
            service_id=data["service_id"],
            customer_id=data["customer_id"],
            service_name=data.get("service_name", ""),
            duration_minutes=int(data["duration_minutes"]),
            price=Decimal(data["price"]),
            date=date.fromisoformat(data["date"]),
            start_time=time.fromisoformat(data["start_time"]),
            end_time=time.fromisoformat(data["end_time"]),
            status=AppointmentStatus(data["status"]),
            payment=Payment(
                method=PaymentMethod(payment_data["method"]),
                status=PaymentStatus(payment_data["status"]),
                amount=Decimal(payment_data["amount"]),
                transaction_id=payment_data.get("transaction_id"),
            ),
            promotion=promotion,
            notes=data.get("notes"),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            review_eligible=bool(data.get("review_eligible", False)),
            idempotency_token=data.get("idempotency_token"),
        )
