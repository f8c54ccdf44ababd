"""
Shared test doubles and helpers
"""

import hashlib
import hmac
import json
import time
from typing import Dict, List, Optional
from uuid import uuid4

from app.core.security import create_access_token
from app.models.user import User
from app.services.payment_gateway import (
    ExternalPaymentStatus,
    IntentState,
    PaymentGateway,
    PaymentIntentHandle,
)

WEBHOOK_SECRET = "whsec_test_secret"


class FakePaymentGateway(PaymentGateway):
    """In-memory processor; webhook signature checks stay real"""

    def __init__(self):
        super().__init__(api_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET, timeout=1.0)
        self.customers: List[Dict] = []
        self.intents: List[Dict] = []
        self.canceled: List[str] = []
        self.states: Dict[str, IntentState] = {}

    async def create_customer(self, email: str, user_id: str) -> str:
        customer_id = f"cus_{len(self.customers) + 1}"
        self.customers.append({"id": customer_id, "email": email, "user_id": user_id})
        return customer_id

    async def create_intent(self, amount_minor, currency, customer, metadata, idempotency_key=None):
        intent_id = f"pi_{uuid4().hex[:16]}"
        self.intents.append({
            "id": intent_id,
            "amount": amount_minor,
            "currency": currency,
            "customer": customer,
            "metadata": metadata,
            "idempotency_key": idempotency_key,
        })
        return PaymentIntentHandle(id=intent_id, client_secret=f"{intent_id}_secret_abc", status="requires_payment_method")

    async def retrieve_intent(self, intent_id: str) -> IntentState:
        return self.states.get(
            intent_id,
            IntentState(id=intent_id, status=ExternalPaymentStatus.PENDING, raw_status="requires_payment_method"),
        )

    async def cancel_intent(self, intent_id: str) -> None:
        self.canceled.append(intent_id)

    def set_state(
        self,
        intent_id: str,
        status: ExternalPaymentStatus,
        charge_id: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> None:
        self.states[intent_id] = IntentState(
            id=intent_id,
            status=status,
            raw_status=status.value,
            charge_id=charge_id,
            failure_reason=failure_reason,
        )


def sign_webhook(payload: Dict, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None):
    """Build a body and a Stripe-Signature header for it"""
    body = json.dumps(payload)
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{body}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return body.encode("utf-8"), f"t={timestamp},v1={signature}"


def intent_event(event_type: str, intent_id: str, **fields) -> Dict:
    obj = {"id": intent_id, "object": "payment_intent", **fields}
    return {"id": f"evt_{uuid4().hex[:12]}", "object": "event", "type": event_type, "data": {"object": obj}}


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}
