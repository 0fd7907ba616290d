from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from booking_engine.application.ports.appointment_repository import AppointmentRepositoryPort
from booking_engine.application.ports.clock import ClockPort
from booking_engine.application.ports.payment_gateway import PaymentGatewayPort
from booking_engine.application.use_cases.appointment_queries import AppointmentQueries
from booking_engine.application.use_cases.appointment_state_machine import AppointmentStateMachine
from booking_engine.application.use_cases.book_appointment import BookingOrchestrator
from booking_engine.application.use_cases.booking_conflict_guard import BookingConflictGuard
from booking_engine.application.use_cases.promotion_validator import PromotionValidator
from booking_engine.application.use_cases.slot_availability import SlotAvailabilityCalculator
from booking_engine.application.use_cases.update_appointment_status import UpdateAppointmentStatusUseCase
from booking_engine.core.config import Settings, settings
from booking_engine.infrastructure.catalog.catalog_data import DEMO_PROMOTIONS, DEMO_SERVICES, DEMO_SHOPS
from booking_engine.infrastructure.catalog.catalog_store import CatalogStore
from booking_engine.infrastructure.clock import SystemClock
from booking_engine.infrastructure.payments.gateway_client import HttpPaymentGateway
from booking_engine.infrastructure.payments.mock_gateway import MockPaymentGateway
from booking_engine.infrastructure.store.json_appointments import JsonAppointmentRepository
from booking_engine.infrastructure.store.memory_appointments import MemoryAppointmentRepository
from booking_engine.infrastructure.store.memory_idempotency import MemoryIdempotencyStore
from booking_engine.infrastructure.store.memory_promotions import MemoryPromotionRepository
from booking_engine.infrastructure.store.memory_reservations import MemoryReservationStore


@dataclass
class Container:
    catalog: CatalogStore
    appointments: AppointmentRepositoryPort
    promotions: MemoryPromotionRepository
    clock: ClockPort
    payments: PaymentGatewayPort
    guard: BookingConflictGuard
    availability: SlotAvailabilityCalculator
    validator: PromotionValidator
    state_machine: AppointmentStateMachine
    orchestrator: BookingOrchestrator
    status_updates: UpdateAppointmentStatusUseCase
    queries: AppointmentQueries


def build_appointment_repository(config: Settings) -> AppointmentRepositoryPort:
    if config.STORE_PROVIDER.lower() == "json":
        return JsonAppointmentRepository(data_dir=config.DATA_DIR)
    return MemoryAppointmentRepository()


def build_payment_gateway(config: Settings) -> PaymentGatewayPort:
    if not config.PAYMENT_GATEWAY_API_KEY or config.ENV.lower() in {"dev", "local", "test"}:
        return MockPaymentGateway()
    return HttpPaymentGateway(
        api_key=config.PAYMENT_GATEWAY_API_KEY,
        base_url=config.PAYMENT_GATEWAY_BASE_URL,
        timeout=config.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
    )


def build_container(
    config: Settings = settings,
    catalog: CatalogStore | None = None,
    appointments: AppointmentRepositoryPort | None = None,
    promotions: MemoryPromotionRepository | None = None,
    clock: ClockPort | None = None,
    payments: PaymentGatewayPort | None = None,
) -> Container:
    logger = logging.getLogger(__name__)

    if catalog is None:
        catalog = CatalogStore(DEMO_SHOPS, DEMO_SERVICES) if config.SEED_DEMO_DATA else CatalogStore()
    if promotions is None:
        promotions = MemoryPromotionRepository(DEMO_PROMOTIONS if config.SEED_DEMO_DATA else None)
    appointments = appointments or build_appointment_repository(config)
    clock = clock or SystemClock()
    payments = payments or build_payment_gateway(config)

    guard = BookingConflictGuard(MemoryReservationStore())
    restored = guard.rebuild(appointments.list_non_terminal())
    if restored:
        logger.info("Restored slot claims from stored appointments", extra={"count": restored})

    availability = SlotAvailabilityCalculator(
        catalog=catalog,
        appointments=appointments,
        clock=clock,
        granularity_minutes=config.SLOT_GRANULARITY_MINUTES,
    )
    validator = PromotionValidator(promotions=promotions, clock=clock)
    state_machine = AppointmentStateMachine()

    orchestrator = BookingOrchestrator(
        catalog=catalog,
        appointments=appointments,
        promotions=promotions,
        availability=availability,
        validator=validator,
        guard=guard,
        state_machine=state_machine,
        payments=payments,
        idempotency=MemoryIdempotencyStore(ttl_seconds=config.IDEMPOTENCY_TTL_SECONDS),
        clock=clock,
        currency=config.CURRENCY,
    )
    status_updates = UpdateAppointmentStatusUseCase(
        appointments=appointments,
        catalog=catalog,
        state_machine=state_machine,
        guard=guard,
        payments=payments,
        clock=clock,
    )

    return Container(
        catalog=catalog,
        appointments=appointments,
        promotions=promotions,
        clock=clock,
        payments=payments,
        guard=guard,
        availability=availability,
        validator=validator,
        state_machine=state_machine,
        orchestrator=orchestrator,
        status_updates=status_updates,
        queries=AppointmentQueries(appointments=appointments, catalog=catalog),
    )


@lru_cache
def get_container() -> Container:
    return build_container()
