"""
Profile lookup, update and account deletion.

Accounts are soft-deleted: the row stays for billing history, the personal fields are
anonymized and `deleted_at` makes every later request with that token unauthenticated.
"""
import logging
from typing import Any, Dict, Iterable, Optional

import stripe
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from autowhiz.core.config import settings
from autowhiz.core.errors import NotFoundError, ValidationError
from autowhiz.db.base import utcnow
from autowhiz.models.profile import Profile
from autowhiz.schemas.billing import subscription_to_dict
from autowhiz.schemas.metadata import merge_preferences
from autowhiz.schemas.profile import ACCOUNT_DELETE_CONFIRMATION, ProfileUpdate, profile_to_dict
from autowhiz.services import activity_log
from autowhiz.services.entitlements import get_active_subscription, get_usage_summary

logger = logging.getLogger(__name__)

INCLUDE_OPTIONS = frozenset({"subscription", "usage", "activity"})


def get_or_create_profile(db: Session, user_id: str, email: Optional[str]) -> Profile:
    """Profile for an authenticated user, created on first sight."""
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile:
        return profile

    profile = Profile(id=user_id, email=email or "")
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        # Another request created it first
        db.rollback()
        profile = db.query(Profile).filter(Profile.id == user_id).first()
        if not profile:
            raise
        return profile

    db.refresh(profile)
    logger.info("Created profile for user %s", user_id)
    return profile


def _get(db: Session, user_id: str) -> Profile:
    profile = db.query(Profile).filter(Profile.id == user_id, Profile.deleted_at.is_(None)).first()
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


def get_profile(db: Session, user_id: str, include: Iterable[str] = ()) -> Dict[str, Any]:
    profile = _get(db, user_id)
    data = {"profile": profile_to_dict(profile)}
    wanted = set(include) & INCLUDE_OPTIONS

    if "subscription" in wanted:
        data["subscription"] = subscription_to_dict(get_active_subscription(db, user_id))
    if "usage" in wanted:
        data["usage"] = get_usage_summary(db, profile)
    if "activity" in wanted:
        data["activity"] = activity_log.recent_activity(db, user_id)
    return data


def update_profile(db: Session, user_id: str, changes: ProfileUpdate) -> Dict[str, Any]:
    profile = _get(db, user_id)
    fields = changes.model_dump(exclude_unset=True)
    if not fields:
        raise ValidationError("No valid fields to update")

    preferences = fields.pop("preferences", None)
    for key, value in fields.items():
        setattr(profile, key, value)
    if preferences is not None:
        try:
            profile.preferences = merge_preferences(profile.preferences, preferences).model_dump()
        except ValueError as e:
            raise ValidationError(f"Invalid preferences: {e}")

    changed = sorted(list(fields) + (["preferences"] if preferences is not None else []))
    activity_log.record(db, user_id, "profile_updated", resource_type="profile", resource_id=user_id,
                        details={"fields": changed})
    db.commit()
    db.refresh(profile)
    return profile_to_dict(profile)


def _cancel_stripe_subscription(stripe_subscription_id: str) -> None:
    if not settings.STRIPE_SECRET_KEY:
        return
    stripe.api_key = settings.STRIPE_SECRET_KEY
    try:
        stripe.Subscription.modify(stripe_subscription_id, cancel_at_period_end=True)
        logger.info("Scheduled cancellation of Stripe subscription %s", stripe_subscription_id)
    except stripe.StripeError as e:
        # Account deletion proceeds; the subscription can be canceled from the dashboard
        logger.error("Failed to cancel Stripe subscription %s: %s", stripe_subscription_id, e)


def delete_account(db: Session, user_id: str, confirmation: Optional[str]) -> None:
    if confirmation != ACCOUNT_DELETE_CONFIRMATION:
        raise ValidationError(f'Please type "{ACCOUNT_DELETE_CONFIRMATION}" to confirm')

    profile = _get(db, user_id)
    subscription = get_active_subscription(db, user_id)
    if subscription is not None and subscription.stripe_subscription_id:
        _cancel_stripe_subscription(subscription.stripe_subscription_id)
        subscription.cancel_at_period_end = True

    profile.deleted_at = utcnow()
    profile.email = f"deleted_{user_id}@deleted.local"
    profile.full_name = "Deleted User"
    profile.display_name = None
    profile.phone = None
    profile.avatar_url = None

    activity_log.record(db, user_id, "account_deleted", resource_type="profile", resource_id=user_id)
    db.commit()
    logger.info("Soft-deleted account %s", user_id)
