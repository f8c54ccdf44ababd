"""
Service wiring for the HTTP layer

Services are assembled through FastAPI dependencies, so tests can swap any
collaborator (usually the payment gateway) with ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from app.config import settings
from app.core.plans import PlanCatalog, load_plan_catalog
from app.services.event_service import EventService
from app.services.membership_service import MembershipService
from app.services.notification_service import NotificationDispatcher
from app.services.payment_gateway import PaymentGateway, build_payment_gateway
from app.services.payment_service import PaymentOrchestrator
from app.services.reconciliation_service import PaymentReconciler
from app.services.seat_service import SeatReservationService


@lru_cache
def get_plan_catalog() -> PlanCatalog:
    return load_plan_catalog(settings)


@lru_cache
def get_notifier() -> NotificationDispatcher:
    return NotificationDispatcher()


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    return build_payment_gateway()


def get_event_service() -> EventService:
    return EventService()


def get_seat_service(
    notifier: NotificationDispatcher = Depends(get_notifier)
) -> SeatReservationService:
    return SeatReservationService(notifier=notifier)


def get_membership_service(
    notifier: NotificationDispatcher = Depends(get_notifier)
) -> MembershipService:
    return MembershipService(notifier=notifier)


def get_payment_orchestrator(
    gateway: PaymentGateway = Depends(get_payment_gateway),
    catalog: PlanCatalog = Depends(get_plan_catalog),
    membership_service: MembershipService = Depends(get_membership_service)
) -> PaymentOrchestrator:
    return PaymentOrchestrator(
        gateway=gateway,
        catalog=catalog,
        membership_service=membership_service,
    )


def get_reconciler(
    gateway: PaymentGateway = Depends(get_payment_gateway),
    membership_service: MembershipService = Depends(get_membership_service),
    notifier: NotificationDispatcher = Depends(get_notifier)
) -> PaymentReconciler:
    return PaymentReconciler(
        gateway=gateway,
        membership_service=membership_service,
        notifier=notifier,
    )
