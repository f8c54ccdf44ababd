"""
Plan catalogue configuration

The catalogue is built once from settings at startup and handed to the
services that need it, instead of being looked up from process globals.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Iterator, Mapping, Tuple

from app.config import Settings
from app.models.plan import PlanType


@dataclass(frozen=True)
class PlanConfig:
    """Pricing and processor identifiers for one plan type"""
    plan_type: PlanType
    name: str
    description: str
    features: Tuple[str, ...]
    price: Decimal
    currency: str
    stripe_product_id: str
    stripe_price_id: str


PLAN_METADATA = MappingProxyType({
    PlanType.DIGITAL_MEMBER: {
        "name": "Digital Member",
        "description": "Access to digital streams, online events, and exclusive content.",
        "features": (
            "Digital event access",
            "Livestreams",
            "Online concerts",
        ),
    },
    PlanType.PHYSICAL_MEMBER: {
        "name": "Physical Member",
        "description": "Hybrid membership with access to select physical events and content.",
        "features": (
            "Physical event access (general entry)",
            "Digital event access",
            "Livestreams",
        ),
    },
    PlanType.VIP_MEMBER: {
        "name": "VIP Member",
        "description": "All-access membership with premium perks and exclusive offers.",
        "features": (
            "All physical event access",
            "Table bookings",
            "Exclusive offers",
            "Digital event access",
            "Livestreams",
        ),
    },
})


@dataclass(frozen=True)
class PlanCatalog:
    """Immutable mapping of plan type to its configuration"""
    plans: Mapping[PlanType, PlanConfig] = field(default_factory=dict)

    def get(self, plan_type: PlanType) -> PlanConfig:
        try:
            return self.plans[plan_type]
        except KeyError:
            raise KeyError(f"Plan configuration not found for type: {plan_type}") from None

    def __iter__(self) -> Iterator[PlanConfig]:
        return iter(self.plans.values())

    def __len__(self) -> int:
        return len(self.plans)


def load_plan_catalog(settings: Settings) -> PlanCatalog:
    """
    Build the plan catalogue from settings.

    Each plan type reads ``<PLAN_TYPE>_PRICE``, ``<PLAN_TYPE>_CURRENCY``,
    ``<PLAN_TYPE>_STRIPE_PRODUCT_ID`` and ``<PLAN_TYPE>_STRIPE_PRICE_ID``.
    """
    plans = {}
    for plan_type in PlanType:
        prefix = plan_type.value
        metadata = PLAN_METADATA[plan_type]
        plans[plan_type] = PlanConfig(
            plan_type=plan_type,
            name=metadata["name"],
            description=metadata["description"],
            features=metadata["features"],
            price=Decimal(getattr(settings, f"{prefix}_PRICE")).quantize(Decimal("0.01")),
            currency=getattr(settings, f"{prefix}_CURRENCY").upper(),
            stripe_product_id=getattr(settings, f"{prefix}_STRIPE_PRODUCT_ID"),
            stripe_price_id=getattr(settings, f"{prefix}_STRIPE_PRICE_ID"),
        )
    return PlanCatalog(plans=MappingProxyType(plans))
