"""
Payment reconciliation

Applies an external payment outcome (webhook delivery or synchronous
confirmation) to a pending Payment and creates the funded Membership in the
same transaction. The status write is a compare-and-swap on ``pending``, so
replays and races between webhook and confirmation are no-ops.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.core.logging import ContextLoggerAdapter
from app.core.metrics import record_membership_transition, record_payment_transition
from app.models.base import utcnow
from app.models.membership import Membership, MembershipStatus
from app.models.payment import Payment, PaymentStatus
from app.services.membership_service import MembershipService
from app.services.notification_service import NotificationDispatcher
from app.services.payment_gateway import (
    FAILED_EVENT,
    SUCCEEDED_EVENT,
    ExternalPaymentStatus,
    PaymentGateway,
    WebhookEvent,
)

logger = logging.getLogger(__name__)

MANUAL_REVIEW_KEY = "manual_review"


@dataclass
class ReconciliationResult:
    payment: Payment
    membership: Optional[Membership] = None
    changed: bool = False


class PaymentReconciler:
    """Service that settles payments and activates memberships"""

    def __init__(
        self,
        gateway: PaymentGateway,
        membership_service: MembershipService,
        notifier: Optional[NotificationDispatcher] = None,
    ):
        self.gateway = gateway
        self.membership_service = membership_service
        self.notifier = notifier

    async def confirm_payment(
        self,
        db: AsyncSession,
        payment_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None
    ) -> ReconciliationResult:
        """
        Poll the processor for a pending payment and reconcile it
        """
        payment = await self._load_payment(db, Payment.id == payment_id, user_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)

        if payment.status != PaymentStatus.PENDING:
            membership = await self.membership_service.get_by_payment(db, payment.id)
            return ReconciliationResult(payment=payment, membership=membership)

        state = await self.gateway.retrieve_intent(payment.external_intent_id)
        return await self.reconcile(
            db,
            payment,
            state.status,
            charge_id=state.charge_id,
            failure_reason=state.failure_reason,
            source="confirmation",
        )

    async def process_webhook(self, db: AsyncSession, event: WebhookEvent) -> Optional[ReconciliationResult]:
        """
        Handle a webhook event that already passed signature verification

        Returns None for event types and intents this service does not track.
        """
        if event.type == SUCCEEDED_EVENT:
            outcome = ExternalPaymentStatus.SUCCEEDED
        elif event.type == FAILED_EVENT:
            outcome = ExternalPaymentStatus.FAILED
        else:
            logger.info(f"Ignoring webhook event {event.id} of type {event.type}")
            return None

        if not event.intent_id:
            logger.warning(f"Webhook event {event.id} carries no payment intent")
            return None

        payment = await self._load_payment(db, Payment.external_intent_id == event.intent_id)
        if payment is None:
            logger.warning(f"Webhook event {event.id} refers to unknown intent {event.intent_id}")
            return None

        return await self.reconcile(
            db,
            payment,
            outcome,
            charge_id=event.charge_id,
            failure_reason=event.failure_reason,
            source="webhook",
        )

    async def reconcile(
        self,
        db: AsyncSession,
        payment: Payment,
        outcome: ExternalPaymentStatus,
        charge_id: Optional[str] = None,
        failure_reason: Optional[str] = None,
        source: str = "confirmation",
    ) -> ReconciliationResult:
        """
        Move a pending payment to the outcome reported by the processor

        Only the first caller to observe ``pending`` writes anything; everyone
        else gets the stored payment back with ``changed=False``.
        """
        log = ContextLoggerAdapter(logger, {
            "payment_id": str(payment.id),
            "user_id": str(payment.user_id),
            "source": source,
        })

        if payment.status != PaymentStatus.PENDING or outcome == ExternalPaymentStatus.PENDING:
            membership = await self.membership_service.get_by_payment(db, payment.id)
            return ReconciliationResult(payment=payment, membership=membership)

        now = utcnow()
        if outcome == ExternalPaymentStatus.SUCCEEDED:
            values = {"status": PaymentStatus.SUCCEEDED, "paid_at": now}
            if charge_id:
                values["external_charge_id"] = charge_id
        elif outcome == ExternalPaymentStatus.FAILED:
            values = {
                "status": PaymentStatus.FAILED,
                "failed_at": now,
                "failure_reason": failure_reason or "Payment failed",
            }
        else:
            values = {"status": PaymentStatus.CANCELED, "canceled_at": now}

        result = await db.execute(
            update(Payment)
            .where(Payment.id == payment.id, Payment.status == PaymentStatus.PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            await db.commit()  # zero rows matched, nothing to undo
            payment = await self._load_payment(db, Payment.id == payment.id)
            membership = await self.membership_service.get_by_payment(db, payment.id)
            log.info(f"Payment already {payment.status.value}, nothing to reconcile")
            return ReconciliationResult(payment=payment, membership=membership)

        membership = None
        if outcome == ExternalPaymentStatus.SUCCEEDED:
            try:
                membership = await self._activate_membership(db, payment, now, log)
                await db.commit()
            except IntegrityError:
                await db.rollback()
                log.warning("Concurrent activation created another active membership")
                raise ConflictError(
                    "User already has an active membership",
                    details={"payment_id": str(payment.id)}
                )
        else:
            await db.commit()

        payment = await self._load_payment(db, Payment.id == payment.id)
        record_payment_transition(payment.status.value, source)
        if membership is not None:
            record_membership_transition(MembershipStatus.ACTIVE.value)
        log.info(f"Payment reconciled to {payment.status.value}")

        await self._notify(payment, membership)
        return ReconciliationResult(payment=payment, membership=membership, changed=True)

    async def _activate_membership(
        self,
        db: AsyncSession,
        payment: Payment,
        now,
        log: ContextLoggerAdapter
    ) -> Optional[Membership]:
        expired = await self.membership_service.expire_lapsed_for_user(db, payment.user_id, now)
        if expired:
            record_membership_transition(MembershipStatus.EXPIRED.value, expired)

        live = await db.execute(
            select(Membership.id).where(
                Membership.user_id == payment.user_id,
                Membership.status == MembershipStatus.ACTIVE,
                Membership.end_date > now,
            )
        )
        existing_id = live.scalars().first()
        if existing_id is not None:
            metadata = dict(payment.payment_metadata or {})
            metadata[MANUAL_REVIEW_KEY] = f"duplicate active membership {existing_id}"
            await db.execute(
                update(Payment)
                .where(Payment.id == payment.id)
                .values(payment_metadata=metadata)
                .execution_options(synchronize_session=False)
            )
            log.warning(f"User already holds membership {existing_id}; payment flagged for manual review")
            return None

        membership = await self.membership_service.create(db, payment, now=now)
        log.info(f"Membership {membership.id} activated until {membership.end_date.isoformat()}")
        return membership

    async def _load_payment(
        self,
        db: AsyncSession,
        condition,
        user_id: Optional[uuid.UUID] = None
    ) -> Optional[Payment]:
        query = select(Payment).where(condition)
        if user_id is not None:
            query = query.where(Payment.user_id == user_id)
        result = await db.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def _notify(self, payment: Payment, membership: Optional[Membership]) -> None:
        if self.notifier is None:
            return
        if membership is not None:
            await self.notifier.notify(
                payment.user_id,
                title="Membership activated",
                content=f"Your membership is active until {membership.end_date:%d %B %Y}.",
                data={"membership_id": membership.id, "payment_id": payment.id},
            )
        elif payment.status == PaymentStatus.FAILED:
            await self.notifier.notify(
                payment.user_id,
                title="Payment failed",
                content=payment.failure_reason or "Your payment could not be completed.",
                data={"payment_id": payment.id},
            )
