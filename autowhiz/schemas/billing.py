from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from autowhiz.schemas.common import number
from autowhiz.schemas.metadata import PlanFeatures


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_id: str = Field(..., alias="priceId")


def plan_to_dict(plan) -> Dict[str, Any]:
    return {
        "id": plan.id,
        "name": plan.name,
        "tier": plan.tier,
        "description": plan.description,
        "price_monthly": number(plan.price_monthly),
        "price_yearly": number(plan.price_yearly),
        "currency": plan.currency,
        "analyses_per_month": plan.analyses_per_month,
        "history_reports_per_month": plan.history_reports_per_month,
        "stripe_price_id_monthly": plan.stripe_price_id_monthly,
        "stripe_price_id_yearly": plan.stripe_price_id_yearly,
        "features": PlanFeatures.model_validate(plan.features or {}).model_dump(),
        "is_popular": plan.is_popular,
    }


def subscription_to_dict(subscription) -> Optional[Dict[str, Any]]:
    if subscription is None:
        return None
    return {
        "id": subscription.id,
        "status": subscription.status,
        "plan": plan_to_dict(subscription.plan) if subscription.plan else None,
        "current_period_start": subscription.current_period_start.isoformat() if subscription.current_period_start else None,
        "current_period_end": subscription.current_period_end.isoformat() if subscription.current_period_end else None,
        "cancel_at_period_end": subscription.cancel_at_period_end,
        "canceled_at": subscription.canceled_at.isoformat() if subscription.canceled_at else None,
        "analyses_used": subscription.analyses_used,
    }
