from __future__ import annotations

import logging

from booking_engine.application.exceptions import InvariantViolation
from booking_engine.domain.entities.appointment import Appointment

logger = logging.getLogger(__name__)


def check_appointment(appointment: Appointment) -> Appointment:
    """Fail loudly on stored appointments that break the slot or price invariants."""
    problem = None
    if appointment.end_time <= appointment.start_time:
        problem = "end_time is not after start_time"
    elif appointment.payment.amount < 0:
        problem = "payment amount is negative"
    elif appointment.payment.amount != appointment.price - appointment.promotion.discount:
        problem = "payment amount does not match price minus discount"

    if problem:
        logger.error(
            "Appointment invariant violated",
            extra={"appointment_id": appointment.id, "shop_id": appointment.shop_id, "reason": problem},
        )
        raise InvariantViolation(f"Appointment {appointment.id}: {problem}")
    return appointment
