from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable

from booking_engine.application.exceptions import InvalidTransition, Unauthorized
from booking_engine.application.utils.calendar_model import local_datetime, shop_local_now
from booking_engine.domain.entities.appointment import Actor, Appointment, AppointmentStatus, PaymentStatus
from booking_engine.domain.entities.shop import Shop


class SideEffect(str, Enum):
    release_slot = "release_slot"
    refund_payment = "refund_payment"


# (appointment, shop, now) -> None when allowed, else the reason it is not yet allowed
TimeGuard = Callable[[Appointment, Shop, datetime], "str | None"]


def _after_end(appointment: Appointment, shop: Shop, now: datetime) -> str | None:
    if now < local_datetime(shop, appointment.date, appointment.end_time):
        return "appointment has not ended yet"
    return None


def _after_start(appointment: Appointment, shop: Shop, now: datetime) -> str | None:
    if now < local_datetime(shop, appointment.date, appointment.start_time):
        return "appointment has not started yet"
    return None


def _date_in_future(appointment: Appointment, shop: Shop, now: datetime) -> str | None:
    if appointment.date <= shop_local_now(shop, now).date():
        return "confirmed appointments can only be cancelled before their date"
    return None


@dataclass(frozen=True)
class TransitionRule:
    actors: frozenset[Actor]
    guard: TimeGuard | None = None


_OWNER = frozenset({Actor.shop_owner})
_EITHER = frozenset({Actor.customer, Actor.shop_owner})

TRANSITIONS: dict[tuple[AppointmentStatus, AppointmentStatus], TransitionRule] = {
    (AppointmentStatus.pending, AppointmentStatus.confirmed): TransitionRule(_OWNER),
    (AppointmentStatus.pending, AppointmentStatus.cancelled): TransitionRule(_EITHER),
    (AppointmentStatus.pending, AppointmentStatus.rejected): TransitionRule(_OWNER),
    (AppointmentStatus.confirmed, AppointmentStatus.completed): TransitionRule(_OWNER, _after_end),
    (AppointmentStatus.confirmed, AppointmentStatus.cancelled): TransitionRule(_EITHER, _date_in_future),
    (AppointmentStatus.confirmed, AppointmentStatus.no_show): TransitionRule(_OWNER, _after_start),
}


@dataclass(frozen=True)
class TransitionOutcome:
    appointment: Appointment
    previous_status: AppointmentStatus
    side_effects: tuple[SideEffect, ...]


class AppointmentStateMachine:
    """
    Single definition of which status changes are legal, for whom, and when.

    The machine is pure: it returns the updated appointment and the side
    effects the caller has to run, it never touches stores or collaborators.
    """

    def initial_status(self, shop: Shop) -> AppointmentStatus:
        return AppointmentStatus.confirmed if shop.auto_confirm else AppointmentStatus.pending

    def allowed_targets(self, status: AppointmentStatus, actor: Actor) -> list[AppointmentStatus]:
        return [target for (source, target), rule in TRANSITIONS.items() if source == status and actor in rule.actors]

    def transition(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        actor: Actor,
        shop: Shop,
        now: datetime,
    ) -> TransitionOutcome:
        rule = TRANSITIONS.get((appointment.status, target))
        if rule is None:
            raise InvalidTransition(f"Cannot change status from {appointment.status.value} to {target.value}")
        if actor not in rule.actors:
            raise Unauthorized(f"A {actor.value} cannot move an appointment to {target.value}")
        if rule.guard is not None:
            problem = rule.guard(appointment, shop, now)
            if problem:
                raise InvalidTransition(
                    f"Cannot change status from {appointment.status.value} to {target.value}: {problem}"
                )

        updated = replace(
            appointment,
            status=target,
            updated_at=now,
            review_eligible=appointment.review_eligible or target == AppointmentStatus.completed,
        )

        side_effects: list[SideEffect] = []
        if appointment.occupies_slot and not updated.occupies_slot:
            side_effects.append(SideEffect.release_slot)
        if target in (AppointmentStatus.cancelled, AppointmentStatus.rejected):
            if appointment.payment.status == PaymentStatus.completed:
                side_effects.append(SideEffect.refund_payment)

        return TransitionOutcome(
            appointment=updated,
            previous_status=appointment.status,
            side_effects=tuple(side_effects),
        )
