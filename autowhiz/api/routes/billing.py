from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from autowhiz.db.session import get_db
from autowhiz.dependencies.auth import RequestContext, get_request_context
from autowhiz.models.profile import Profile
from autowhiz.models.subscription_plan import SubscriptionPlan
from autowhiz.schemas.billing import CheckoutRequest, plan_to_dict, subscription_to_dict
from autowhiz.services.checkout import create_checkout_session
from autowhiz.services.entitlements import get_active_subscription, get_usage_summary

router = APIRouter()


@router.get("/plans")
def list_plans(db: Session = Depends(get_db)):
    """Active plans for the pricing page. No session required."""
    plans = (
        db.query(SubscriptionPlan)
        .filter(SubscriptionPlan.is_active.is_(True))
        .order_by(SubscriptionPlan.sort_order.asc())
        .all()
    )
    return {"data": [plan_to_dict(plan) for plan in plans]}


@router.get("/subscription")
def get_subscription(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    profile = db.query(Profile).filter(Profile.id == ctx.user_id).first()
    return {
        "data": {
            "subscription": subscription_to_dict(get_active_subscription(db, ctx.user_id)),
            "usage": get_usage_summary(db, profile),
        }
    }


@router.post("/checkout")
def create_checkout(
    payload: CheckoutRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return {"data": create_checkout_session(db, ctx, payload.price_id)}
