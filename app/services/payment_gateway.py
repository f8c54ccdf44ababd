"""
Payment processor gateway

Thin async wrapper over the Stripe SDK. The SDK is blocking, so every call runs
in a worker thread bounded by STRIPE_REQUEST_TIMEOUT_SECONDS. Processor failures
and timeouts surface as ExternalServiceError; nothing is retried here.
"""

import asyncio
import enum
import json
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from functools import partial
from typing import Any, Callable, Dict, Optional

import stripe

from app.config import settings
from app.core.exceptions import ExternalServiceError, ValidationError, WebhookSignatureError
from app.core.metrics import PAYMENT_GATEWAY_ERRORS

logger = logging.getLogger(__name__)

# ISO currencies the processor charges in whole units
ZERO_DECIMAL_CURRENCIES = frozenset({
    "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
    "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
})

SUCCEEDED_EVENT = "payment_intent.succeeded"
FAILED_EVENT = "payment_intent.payment_failed"


class ExternalPaymentStatus(str, enum.Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    PENDING = "pending"


@dataclass(frozen=True)
class PaymentIntentHandle:
    id: str
    client_secret: str
    status: str


@dataclass(frozen=True)
class IntentState:
    """Processor-side view of an intent, reduced to what reconciliation needs"""
    id: str
    status: ExternalPaymentStatus
    raw_status: str
    charge_id: Optional[str] = None
    failure_reason: Optional[str] = None


@dataclass(frozen=True)
class WebhookEvent:
    id: str
    type: str
    intent_id: Optional[str]
    charge_id: Optional[str] = None
    failure_reason: Optional[str] = None


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Convert a decimal amount into the processor's integer minor units"""
    amount = Decimal(amount)
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def map_intent_status(raw_status: str, has_payment_error: bool = False) -> ExternalPaymentStatus:
    if raw_status == "succeeded":
        return ExternalPaymentStatus.SUCCEEDED
    if raw_status == "canceled":
        return ExternalPaymentStatus.CANCELED
    # A declined attempt sends the intent back to requires_payment_method
    if raw_status == "requires_payment_method" and has_payment_error:
        return ExternalPaymentStatus.FAILED
    return ExternalPaymentStatus.PENDING


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _error_message(error: Any) -> Optional[str]:
    if not error:
        return None
    return _field(error, "message") or _field(error, "code") or "Payment failed"


class PaymentGateway:
    """Stripe-backed payment processor client"""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout: float = 10.0,
        webhook_tolerance: int = 300,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        self.webhook_tolerance = webhook_tolerance

    async def _call(self, operation: str, func: Callable, *args, **kwargs) -> Any:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(partial(func, *args, api_key=self.api_key, **kwargs)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            PAYMENT_GATEWAY_ERRORS.labels(operation=operation).inc()
            logger.error(f"Stripe {operation} timed out after {self.timeout}s")
            raise ExternalServiceError("stripe", f"Payment processor timed out during {operation}")
        except stripe.StripeError as e:
            PAYMENT_GATEWAY_ERRORS.labels(operation=operation).inc()
            logger.error(f"Stripe error during {operation}: {e.user_message or str(e)}")
            raise ExternalServiceError("stripe", f"Payment processor error during {operation}")

    async def create_customer(self, email: str, user_id: str) -> str:
        customer = await self._call(
            "create_customer",
            stripe.Customer.create,
            email=email,
            metadata={"user_id": user_id},
        )
        logger.info(f"Stripe customer {customer.id} created for user {user_id}")
        return customer.id

    async def create_intent(
        self,
        amount_minor: int,
        currency: str,
        customer: str,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> PaymentIntentHandle:
        intent = await self._call(
            "create_intent",
            stripe.PaymentIntent.create,
            amount=amount_minor,
            currency=currency.lower(),
            customer=customer,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
            idempotency_key=idempotency_key,
        )
        return PaymentIntentHandle(id=intent.id, client_secret=intent.client_secret, status=intent.status)

    async def retrieve_intent(self, intent_id: str) -> IntentState:
        intent = await self._call("retrieve_intent", stripe.PaymentIntent.retrieve, intent_id)
        error = _field(intent, "last_payment_error")
        return IntentState(
            id=intent.id,
            status=map_intent_status(intent.status, bool(error)),
            raw_status=intent.status,
            charge_id=_field(intent, "latest_charge"),
            failure_reason=_error_message(error),
        )

    async def cancel_intent(self, intent_id: str) -> None:
        await self._call("cancel_intent", stripe.PaymentIntent.cancel, intent_id)
        logger.info(f"Stripe payment intent {intent_id} canceled")

    def parse_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify the signature header and decode a webhook delivery

        Raises WebhookSignatureError for a missing secret, a missing header or
        a bad signature, and ValidationError for a body that is not an event.
        """
        if not self.webhook_secret:
            logger.error("Webhook received but STRIPE_WEBHOOK_SECRET is not configured")
            raise WebhookSignatureError("Webhook secret not configured")
        if not signature:
            raise WebhookSignatureError("Missing signature header")

        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        try:
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, self.webhook_tolerance
            )
        except stripe.SignatureVerificationError:
            logger.warning("Rejected webhook with invalid signature")
            raise WebhookSignatureError()

        try:
            event = json.loads(body)
            event_type = event["type"]
            obj = event.get("data", {}).get("object") or {}
            is_intent = obj.get("object", "payment_intent") == "payment_intent"
            return WebhookEvent(
                id=event.get("id", ""),
                type=event_type,
                intent_id=obj.get("id") if is_intent else None,
                charge_id=obj.get("latest_charge"),
                failure_reason=_error_message(obj.get("last_payment_error")),
            )
        except (ValueError, KeyError, TypeError, AttributeError):
            raise ValidationError("Malformed webhook payload", field="body")


def build_payment_gateway() -> PaymentGateway:
    return PaymentGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        timeout=settings.STRIPE_REQUEST_TIMEOUT_SECONDS,
        webhook_tolerance=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
    )
