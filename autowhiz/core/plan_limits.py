from typing import Dict

from autowhiz.core.config import settings

# Sentinel quota for roles and plans without a monthly cap
UNLIMITED_ANALYSES = 9999

# Free tier: 2 analyses per calendar billing period
FREE_TIER_ANALYSES = settings.FREE_TIER_ANALYSES

# Roles that are never metered
UNMETERED_ROLES = frozenset({"admin", "super_admin", "enterprise"})

# Stripe subscription status -> local subscription status
STRIPE_STATUS_MAP: Dict[str, str] = {
    "active": "active",
    "past_due": "past_due",
    "canceled": "canceled",
    "unpaid": "unpaid",
    "incomplete": "incomplete",
    "incomplete_expired": "canceled",
    "trialing": "trialing",
    "paused": "paused",
}

SUBSCRIPTION_STATUSES = frozenset(STRIPE_STATUS_MAP.values())

# Length of the window stamped on checkout before Stripe sends real period bounds
CHECKOUT_PERIOD_DAYS = 30


def map_stripe_status(stripe_status: str) -> str:
    """Map a Stripe subscription status onto the local vocabulary.
    Unrecognized values pass through unchanged."""
    return STRIPE_STATUS_MAP.get(stripe_status, stripe_status)


def role_for_plan(plan_name: str) -> str:
    """Profile role granted by a paid plan."""
    return "enterprise" if plan_name == "Enterprise" else "pro"
