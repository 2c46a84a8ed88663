"""
Monthly analysis quota per user.

Precedence: unmetered roles, then the active subscription's plan, then the free tier.
`resolve_quota` never raises; anything missing degrades to the free tier.
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from autowhiz.core.plan_limits import FREE_TIER_ANALYSES, UNLIMITED_ANALYSES, UNMETERED_ROLES
from autowhiz.models.profile import Profile
from autowhiz.models.subscription import Subscription


def resolve_quota(profile: Optional[Profile], subscription: Optional[Subscription]) -> int:
    if profile is not None and profile.role in UNMETERED_ROLES:
        return UNLIMITED_ANALYSES

    if subscription is not None and subscription.status == "active" and subscription.plan is not None:
        limit = subscription.plan.analyses_per_month
        return UNLIMITED_ANALYSES if limit is None else limit

    return FREE_TIER_ANALYSES


def get_active_subscription(db: Session, user_id: str) -> Optional[Subscription]:
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id, Subscription.status == "active")
        .first()
    )


def get_usage_summary(db: Session, profile: Profile) -> Dict[str, Any]:
    """Quota, usage and plan for the dashboard and the billing page."""
    subscription = get_active_subscription(db, profile.id)
    limit = resolve_quota(profile, subscription)
    used = profile.analyses_this_month or 0
    plan = subscription.plan if subscription is not None else None

    return {
        "limit": limit,
        "used": used,
        "remaining": max(limit - used, 0),
        "unlimited": limit >= UNLIMITED_ANALYSES,
        "plan": plan.name if plan is not None else "Free",
        "status": subscription.status if subscription is not None else None,
        "currentPeriodEnd": (
            subscription.current_period_end.isoformat()
            if subscription is not None and subscription.current_period_end
            else None
        ),
    }
