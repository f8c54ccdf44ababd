"""
Payment Service with Stripe Integration
Creates payment intents for membership plan purchases
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.core.metrics import record_payment_transition
from app.core.plans import PlanCatalog
from app.models.base import utcnow
from app.models.payment import Payment, PaymentStatus
from app.models.plan import Plan
from app.models.user import User
from app.services.membership_service import MembershipService
from app.services.payment_gateway import PaymentGateway, to_minor_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntentResult:
    payment_id: uuid.UUID
    client_secret: str
    amount: Decimal
    currency: str

    def __repr__(self):
        return f"PaymentIntentResult(payment_id={self.payment_id}, amount={self.amount}, currency={self.currency})"


class PaymentOrchestrator:
    """Service for starting and cancelling membership payments"""

    def __init__(
        self,
        gateway: PaymentGateway,
        catalog: PlanCatalog,
        membership_service: MembershipService,
    ):
        self.gateway = gateway
        self.catalog = catalog
        self.membership_service = membership_service

    async def create_payment_intent(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        plan_id: uuid.UUID
    ) -> PaymentIntentResult:
        """
        Create a processor payment intent for a plan purchase

        Refuses users who already hold a live membership before anything is
        sent to the processor.
        """
        user = await db.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFoundError("User", user_id)

        plan = await db.get(Plan, plan_id)
        if plan is None or not plan.is_active:
            raise NotFoundError("Plan", plan_id)

        current = await self.membership_service.get_current_membership(db, user_id)
        if current is not None:
            raise ConflictError(
                "User already has an active membership",
                details={"membership_id": str(current.id), "expires_at": current.end_date.isoformat()}
            )

        self._check_catalog_price(plan)
        customer_id = await self._ensure_customer(db, user)

        payment_id = uuid.uuid4()
        metadata = {
            "payment_id": str(payment_id),
            "user_id": str(user.id),
            "plan_id": str(plan.id),
            "plan_name": plan.name,
            "plan_type": plan.plan_type.value if plan.plan_type else "",
        }
        intent = await self.gateway.create_intent(
            amount_minor=to_minor_units(plan.price, plan.currency),
            currency=plan.currency,
            customer=customer_id,
            metadata=metadata,
            idempotency_key=f"membership-payment-{payment_id}",
        )

        payment = Payment(
            id=payment_id,
            user_id=user.id,
            plan_id=plan.id,
            amount=plan.price,
            currency=plan.currency,
            status=PaymentStatus.PENDING,
            external_intent_id=intent.id,
            external_client_secret=intent.client_secret,
            payment_metadata=metadata,
        )
        db.add(payment)
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception(f"Failed to persist payment {payment_id}, cancelling intent {intent.id}")
            await self._cancel_orphaned_intent(intent.id)
            raise

        record_payment_transition(PaymentStatus.PENDING.value, "create")
        logger.info(
            f"Payment {payment_id} created for user {user.id}, plan {plan.name}: "
            f"{plan.price} {plan.currency} (intent {intent.id})"
        )
        return PaymentIntentResult(
            payment_id=payment_id,
            client_secret=intent.client_secret,
            amount=plan.price,
            currency=plan.currency,
        )

    async def cancel_payment(
        self,
        db: AsyncSession,
        payment_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None
    ) -> Payment:
        """Cancel a pending payment and its processor intent"""
        payment = await self.get_payment(db, payment_id, user_id)
        if payment.status != PaymentStatus.PENDING:
            raise ConflictError(
                f"Cannot cancel a {payment.status.value} payment",
                details={"status": payment.status.value}
            )

        await self.gateway.cancel_intent(payment.external_intent_id)

        result = await db.execute(
            update(Payment)
            .where(Payment.id == payment_id, Payment.status == PaymentStatus.PENDING)
            .values(status=PaymentStatus.CANCELED, canceled_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        payment = await self.get_payment(db, payment_id)
        if result.rowcount != 1:
            raise ConflictError(
                f"Payment became {payment.status.value} while cancelling",
                details={"status": payment.status.value}
            )

        record_payment_transition(PaymentStatus.CANCELED.value, "cancel")
        logger.info(f"Payment {payment_id} canceled")
        return payment

    async def get_payment(
        self,
        db: AsyncSession,
        payment_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None
    ) -> Payment:
        query = select(Payment).where(Payment.id == payment_id)
        if user_id is not None:
            query = query.where(Payment.user_id == user_id)
        result = await db.execute(query.execution_options(populate_existing=True))
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        return payment

    async def get_user_payments(self, db: AsyncSession, user_id: uuid.UUID) -> List[Payment]:
        result = await db.execute(
            select(Payment)
            .where(Payment.user_id == user_id)
            .order_by(Payment.created_at.desc())
        )
        return list(result.scalars().all())

    async def _ensure_customer(self, db: AsyncSession, user: User) -> str:
        if user.stripe_customer_id:
            return user.stripe_customer_id

        customer_id = await self.gateway.create_customer(email=user.email, user_id=str(user.id))
        result = await db.execute(
            update(User)
            .where(User.id == user.id, User.stripe_customer_id.is_(None))
            .values(stripe_customer_id=customer_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        await db.refresh(user)

        if result.rowcount != 1:
            # A concurrent request cached its customer first
            logger.info(f"Discarding duplicate customer {customer_id} for user {user.id}")
        return user.stripe_customer_id

    def _check_catalog_price(self, plan: Plan) -> None:
        if plan.plan_type is None:
            return
        try:
            config = self.catalog.get(plan.plan_type)
        except KeyError:
            logger.warning(f"Plan {plan.name} has no catalogue entry for {plan.plan_type.value}")
            return
        if config.price != plan.price or config.currency != plan.currency:
            logger.warning(
                f"Plan {plan.name} is stored at {plan.price} {plan.currency} but configured at "
                f"{config.price} {config.currency}; charging the stored price"
            )

    async def _cancel_orphaned_intent(self, intent_id: str) -> None:
        try:
            await self.gateway.cancel_intent(intent_id)
        except Exception:
            logger.exception(f"Could not cancel orphaned payment intent {intent_id}")
