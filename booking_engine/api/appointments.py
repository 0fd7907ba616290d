import datetime as dt

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from booking_engine.api.schemas import (
    AppointmentSchema,
    AvailableSlotsResponse,
    CreateAppointmentRequest,
    TimeSlotSchema,
    UpdateStatusRequest,
)
from booking_engine.application.exceptions import InvalidTransition, NotFoundError, Unauthorized
from booking_engine.application.results import Rejected, RejectionKind
from booking_engine.application.use_cases.book_appointment import BookingRequest
from booking_engine.application.utils.calendar_model import parse_hhmm
from booking_engine.domain.entities.appointment import AppointmentStatus
from booking_engine.domain.entities.time_slot import TimeSlot
from booking_engine.wiring.dependencies import Container, get_container

router = APIRouter(prefix="/appointments")

REJECTION_STATUS = {
    RejectionKind.slot_taken: status.HTTP_409_CONFLICT,
    RejectionKind.slot_no_longer_valid: status.HTTP_409_CONFLICT,
    RejectionKind.promotion_rejected: status.HTTP_400_BAD_REQUEST,
    RejectionKind.payment_declined: status.HTTP_402_PAYMENT_REQUIRED,
    RejectionKind.persistence_failure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _rejection_error(rejection: Rejected) -> HTTPException:
    detail = {"message": rejection.message, "kind": rejection.kind.value}
    if rejection.promotion_reason is not None:
        detail["reason"] = rejection.promotion_reason.value
    return HTTPException(status_code=REJECTION_STATUS[rejection.kind], detail=detail)


@router.get("/time-slots", response_model=AvailableSlotsResponse)
def get_time_slots(
    shop_id: str = Query(alias="shopId"),
    service_id: str = Query(alias="serviceId"),
    day: dt.date = Query(alias="date"),
    container: Container = Depends(get_container),
):
    try:
        slots = container.availability.available_slots(shop_id, service_id, day)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return AvailableSlotsResponse(available_slots=[TimeSlotSchema.from_slot(s) for s in slots])


@router.post("", response_model=AppointmentSchema, status_code=status.HTTP_201_CREATED)
def create_appointment(
    req: CreateAppointmentRequest,
    user_id: str = Header(alias="X-User-Id"),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    container: Container = Depends(get_container),
):
    try:
        slot = TimeSlot(parse_hhmm(req.start_time), parse_hhmm(req.end_time))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    booking = BookingRequest(
        customer_id=user_id,
        shop_id=req.shop_id,
        service_id=req.service_id,
        date=req.date,
        slot=slot,
        payment_method=req.payment_method,
        notes=req.notes,
        coupon_code=req.coupon_code,
        idempotency_key=idempotency_key,
    )
    try:
        result = container.orchestrator.book(booking)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if isinstance(result, Rejected):
        raise _rejection_error(result)
    return AppointmentSchema.from_entity(result)


@router.get("/user", response_model=list[AppointmentSchema])
def get_user_appointments(
    user_id: str = Header(alias="X-User-Id"),
    container: Container = Depends(get_container),
):
    return [AppointmentSchema.from_entity(a) for a in container.queries.for_customer(user_id)]


@router.get("/shop/{shop_id}", response_model=list[AppointmentSchema])
def get_shop_appointments(
    shop_id: str,
    user_id: str = Header(alias="X-User-Id"),
    container: Container = Depends(get_container),
):
    try:
        appointments = container.queries.for_shop(shop_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Unauthorized as e:
        raise HTTPException(status_code=403, detail=str(e))
    return [AppointmentSchema.from_entity(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentSchema)
def get_appointment(
    appointment_id: str,
    user_id: str = Header(alias="X-User-Id"),
    container: Container = Depends(get_container),
):
    try:
        appointment = container.queries.get_for_user(appointment_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Unauthorized as e:
        raise HTTPException(status_code=403, detail=str(e))
    return AppointmentSchema.from_entity(appointment)


@router.put("/{appointment_id}/status", response_model=AppointmentSchema)
def update_appointment_status(
    appointment_id: str,
    req: UpdateStatusRequest,
    user_id: str = Header(alias="X-User-Id"),
    container: Container = Depends(get_container),
):
    return _change_status(container, appointment_id, req.status, user_id)


@router.delete("/{appointment_id}", response_model=AppointmentSchema)
def cancel_appointment(
    appointment_id: str,
    user_id: str = Header(alias="X-User-Id"),
    container: Container = Depends(get_container),
):
    return _change_status(container, appointment_id, AppointmentStatus.cancelled, user_id)


def _change_status(container: Container, appointment_id: str, target: AppointmentStatus, user_id: str):
    try:
        appointment = container.status_updates.execute(appointment_id, target, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Unauthorized as e:
        raise HTTPException(status_code=403, detail={"message": str(e), "kind": "Unauthorized"})
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail={"message": str(e), "kind": "InvalidTransition"})
    return AppointmentSchema.from_entity(appointment)
