"""
Stripe Checkout sessions for plan upgrades.

The session metadata carries user_id and price_id; checkout.session.completed
uses them to attach the plan when Stripe calls back.
"""
import logging
from typing import Any, Dict

import stripe
from sqlalchemy.orm import Session

from autowhiz.core.config import settings
from autowhiz.core.errors import InternalError, UpstreamError, ValidationError
from autowhiz.dependencies.auth import RequestContext
from autowhiz.models.profile import Profile
from autowhiz.models.subscription_plan import SubscriptionPlan

logger = logging.getLogger(__name__)


def create_checkout_session(db: Session, ctx: RequestContext, price_id: str) -> Dict[str, Any]:
    if not settings.STRIPE_SECRET_KEY:
        logger.error("[Stripe] STRIPE_SECRET_KEY is not configured")
        raise InternalError("Payments are not configured")

    plan = (
        db.query(SubscriptionPlan)
        .filter(SubscriptionPlan.price_filter(price_id), SubscriptionPlan.is_active.is_(True))
        .first()
    )
    if not plan:
        raise ValidationError("Unknown price ID")

    profile = db.query(Profile).filter(Profile.id == ctx.user_id).first()
    metadata = {"user_id": ctx.user_id, "price_id": price_id}

    params = {
        "mode": "subscription",
        "line_items": [{"price": price_id, "quantity": 1}],
        "success_url": f"{settings.SITE_URL}/dashboard/settings?tab=billing&success=true&session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{settings.SITE_URL}/pricing?canceled=true",
        "metadata": metadata,
        "subscription_data": {"metadata": metadata},
        "client_reference_id": ctx.user_id,
    }
    if profile is not None and profile.stripe_customer_id:
        params["customer"] = profile.stripe_customer_id
    elif ctx.email:
        params["customer_email"] = ctx.email

    stripe.api_key = settings.STRIPE_SECRET_KEY
    try:
        session = stripe.checkout.Session.create(**params)
    except stripe.StripeError as e:
        logger.error("[Stripe] Failed to create checkout session for %s: %s", ctx.user_id, e)
        raise UpstreamError("Failed to create checkout session")

    logger.info("[Stripe] Created checkout session %s for user %s (%s)", session.id, ctx.user_id, plan.name)
    return {"sessionId": session.id, "url": session.url}
