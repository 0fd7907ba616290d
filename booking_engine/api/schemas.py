import datetime as dt
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from booking_engine.application.utils.calendar_model import format_hhmm
from booking_engine.domain.entities.appointment import (
    AppliedPromotion,
    Appointment,
    AppointmentStatus,
    PaymentMethod,
    PaymentStatus,
)
from booking_engine.domain.entities.promotion import DiscountType, Promotion
from booking_engine.domain.entities.time_slot import TimeSlot

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeSlotSchema(CamelModel):
    start_time: str
    end_time: str

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "TimeSlotSchema":
        return cls(start_time=format_hhmm(slot.start), end_time=format_hhmm(slot.end))


class AvailableSlotsResponse(CamelModel):
    available_slots: list[TimeSlotSchema]


class CreateAppointmentRequest(CamelModel):
    shop_id: str
    service_id: str
    date: dt.date
    start_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    payment_method: PaymentMethod = PaymentMethod.offline
    notes: str | None = None
    coupon_code: str | None = None


class UpdateStatusRequest(CamelModel):
    status: AppointmentStatus


class PaymentSchema(CamelModel):
    method: PaymentMethod
    status: PaymentStatus
    amount: Money
    transaction_id: str | None = None


class AppliedPromotionSchema(CamelModel):
    code: str
    discount: Money


class AppointmentSchema(CamelModel):
    id: str
    shop_id: str
    service_id: str
    customer_id: str
    service_name: str
    duration_minutes: int
    price: Money
    date: dt.date
    start_time: str
    end_time: str
    status: AppointmentStatus
    payment: PaymentSchema
    promotion: AppliedPromotionSchema | None = None
    notes: str | None = None
    review_eligible: bool = False
    created_at: dt.datetime
    updated_at: dt.datetime

    @classmethod
    def from_entity(cls, appointment: Appointment) -> "AppointmentSchema":
        promotion = None
        if isinstance(appointment.promotion, AppliedPromotion):
            promotion = AppliedPromotionSchema(
                code=appointment.promotion.code,
                discount=appointment.promotion.discount,
            )
        return cls(
            id=appointment.id,
            shop_id=appointment.shop_id,
            service_id=appointment.service_id,
            customer_id=appointment.customer_id,
            service_name=appointment.service_name,
            duration_minutes=appointment.duration_minutes,
            price=appointment.price,
            date=appointment.date,
            start_time=format_hhmm(appointment.start_time),
            end_time=format_hhmm(appointment.end_time),
            status=appointment.status,
            payment=PaymentSchema(
                method=appointment.payment.method,
                status=appointment.payment.status,
                amount=appointment.payment.amount,
                transaction_id=appointment.payment.transaction_id,
            ),
            promotion=promotion,
            notes=appointment.notes,
            review_eligible=appointment.review_eligible,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )


class ValidatePromotionRequest(CamelModel):
    shop_id: str
    coupon_code: str = Field(min_length=1)
    service_ids: list[str] = Field(default_factory=list)
    total_amount: Decimal = Field(ge=0)


class ValidatePromotionResponse(CamelModel):
    valid: bool = True
    coupon_code: str
    title: str
    discount: Money
    discounted_total: Money


class PromotionSchema(CamelModel):
    id: str
    code: str
    title: str
    discount_type: DiscountType
    value: Money
    min_spend: Money
    max_discount: Money | None = None
    eligible_service_ids: list[str] = Field(default_factory=list)
    starts_at: dt.datetime
    ends_at: dt.datetime

    @classmethod
    def from_entity(cls, promotion: Promotion) -> "PromotionSchema":
        return cls(
            id=promotion.id,
            code=promotion.code,
            title=promotion.title,
            discount_type=promotion.discount_type,
            value=promotion.value,
            min_spend=promotion.min_spend,
            max_discount=promotion.max_discount,
            eligible_service_ids=sorted(promotion.eligible_service_ids),
            starts_at=promotion.starts_at,
            ends_at=promotion.ends_at,
        )


class ActivePromotionsResponse(CamelModel):
    promotions: list[PromotionSchema]
