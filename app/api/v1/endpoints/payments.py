"""
Payment API Endpoints
Membership purchase, confirmation and processor webhooks
"""

from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_payment_gateway, get_payment_orchestrator, get_reconciler
from app.core.database import get_session
from app.core.permissions import Permission
from app.core.security import get_current_user, require_permission
from app.models.user import User
from app.schemas.payment import (
    PaymentConfirmResponse,
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentResponse,
)
from app.schemas.membership import MembershipResponse
from app.schemas.response import WebhookAck
from app.services.payment_gateway import PaymentGateway
from app.services.payment_service import PaymentOrchestrator
from app.services.reconciliation_service import PaymentReconciler

router = APIRouter()


@router.post("/intent", response_model=PaymentIntentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment_intent(
    request: PaymentIntentCreate,
    current_user: User = Depends(require_permission(Permission.PAYMENTS_CREATE)),
    db: AsyncSession = Depends(get_session),
    payments: PaymentOrchestrator = Depends(get_payment_orchestrator)
) -> Any:
    """Start a membership purchase for the calling user"""
    return await payments.create_payment_intent(db, current_user.id, request.plan_id)


@router.get("/", response_model=List[PaymentResponse])
async def list_my_payments(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    payments: PaymentOrchestrator = Depends(get_payment_orchestrator)
) -> Any:
    return await payments.get_user_payments(db, current_user.id)


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    db: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    reconciler: PaymentReconciler = Depends(get_reconciler)
) -> Any:
    """
    Processor webhook; the raw body is needed for signature verification
    """
    payload = await request.body()
    event = gateway.parse_webhook(payload, stripe_signature)
    await reconciler.process_webhook(db, event)
    return WebhookAck()


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    payments: PaymentOrchestrator = Depends(get_payment_orchestrator)
) -> Any:
    return await payments.get_payment(db, payment_id, current_user.id)


@router.post("/{payment_id}/confirm", response_model=PaymentConfirmResponse)
async def confirm_payment(
    payment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    reconciler: PaymentReconciler = Depends(get_reconciler)
) -> Any:
    """Poll the processor and settle a pending payment"""
    result = await reconciler.confirm_payment(db, payment_id, current_user.id)
    return PaymentConfirmResponse(
        payment=PaymentResponse.model_validate(result.payment),
        membership=MembershipResponse.model_validate(result.membership) if result.membership else None,
        changed=result.changed,
    )


@router.post("/{payment_id}/cancel", response_model=PaymentResponse)
async def cancel_payment(
    payment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    payments: PaymentOrchestrator = Depends(get_payment_orchestrator)
) -> Any:
    return await payments.cancel_payment(db, payment_id, current_user.id)
