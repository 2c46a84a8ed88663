"""
Applies verified Stripe webhook events to subscriptions, profiles and payments.

Each event runs in one transaction together with the row that marks its id as
processed, so a redelivered event is acknowledged without being applied twice.
Events that reference unknown users or plans are logged and acknowledged; any
database error rolls back and propagates so Stripe retries the delivery.
"""
import json
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import stripe
from sqlalchemy.orm import Session

from autowhiz.core.config import settings
from autowhiz.core.errors import SignatureError, ValidationError
from autowhiz.core.plan_limits import CHECKOUT_PERIOD_DAYS, role_for_plan
from autowhiz.db.base import utcnow
from autowhiz.models.payment import Payment
from autowhiz.models.profile import Profile
from autowhiz.models.subscription import Subscription
from autowhiz.models.subscription_plan import SubscriptionPlan
from autowhiz.models.webhook_event import WebhookEvent
from autowhiz.services import activity_log, billing_email, notification_store
from autowhiz.services.subscription_state import SubscriptionState, from_timestamp, id_of, next_subscription_state

logger = logging.getLogger(__name__)

# Staff roles are managed by hand and never changed by billing events
STAFF_ROLES = frozenset({"admin", "super_admin"})

PAYMENT_FAILED_MESSAGE = (
    "Your subscription payment failed. Please update your payment method to avoid service interruption."
)

AfterCommit = List[Callable[[], Any]]


def verify_event(payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
    """Check the Stripe-Signature header and return the parsed event."""
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("[Stripe webhook] STRIPE_WEBHOOK_SECRET is not configured")
        raise SignatureError("Webhook secret not configured")
    if not sig_header:
        raise SignatureError("Missing stripe-signature header")

    try:
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            body,
            sig_header,
            settings.STRIPE_WEBHOOK_SECRET,
            tolerance=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
        )
    except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
        logger.warning("[Stripe webhook] Signature verification failed: %s", e)
        raise SignatureError("Invalid signature")

    try:
        event = json.loads(body)
    except ValueError:
        raise ValidationError("Invalid JSON payload")
    if not isinstance(event, dict):
        raise ValidationError("Invalid JSON payload")
    return event


def _profile_by_customer(db: Session, customer_id: Optional[str]) -> Optional[Profile]:
    if not customer_id:
        return None
    return db.query(Profile).filter(Profile.stripe_customer_id == customer_id).first()


def _plan_by_price(db: Session, price_id: Optional[str]) -> Optional[SubscriptionPlan]:
    if not price_id:
        return None
    return db.query(SubscriptionPlan).filter(SubscriptionPlan.price_filter(price_id)).first()


def _set_role(profile: Profile, role: str) -> None:
    if profile.role not in STAFF_ROLES:
        profile.role = role


def _first_price_id(provider_subscription: Dict[str, Any]) -> Optional[str]:
    items = (provider_subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    price = items[0].get("price") or {}
    return price.get("id") if isinstance(price, dict) else price


def _invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    """Older API versions put the id on the invoice, newer ones under parent.subscription_details."""
    subscription_id = invoice.get("subscription")
    if not subscription_id:
        details = (invoice.get("parent") or {}).get("subscription_details") or {}
        subscription_id = details.get("subscription")
    if isinstance(subscription_id, dict):
        subscription_id = subscription_id.get("id")
    return subscription_id


def handle_checkout_completed(db: Session, session: Dict[str, Any], event_created, after_commit: AfterCommit) -> None:
    metadata = session.get("metadata") or {}
    user_id = metadata.get("user_id")
    price_id = metadata.get("price_id")
    if not user_id or not price_id:
        logger.warning("[Stripe webhook] Checkout session %s missing user_id/price_id metadata", session.get("id"))
        return

    plan = _plan_by_price(db, price_id)
    if not plan:
        logger.warning("[Stripe webhook] No plan for price %s", price_id)
        return

    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        logger.warning("[Stripe webhook] Checkout for unknown user %s", user_id)
        return

    customer_id = id_of(session.get("customer"))
    now = utcnow()

    subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
    if subscription is None:
        subscription = Subscription(user_id=user_id)
        db.add(subscription)

    subscription.plan_id = plan.id
    subscription.stripe_subscription_id = id_of(session.get("subscription"))
    subscription.stripe_customer_id = customer_id
    subscription.status = "active"
    subscription.current_period_start = now
    subscription.current_period_end = now + timedelta(days=CHECKOUT_PERIOD_DAYS)
    subscription.cancel_at_period_end = False
    subscription.canceled_at = None
    subscription.analyses_used = 0

    _set_role(profile, role_for_plan(plan.name))
    if customer_id:
        profile.stripe_customer_id = customer_id

    db.flush()
    activity_log.record(
        db,
        user_id,
        "subscription_created",
        resource_type="subscription",
        resource_id=subscription.id,
        details={"plan": plan.name, "price_id": price_id},
    )
    logger.info("[Stripe webhook] User %s subscribed to %s", user_id, plan.name)


def handle_subscription_changed(db: Session, provider_subscription: Dict[str, Any], event_created, after_commit: AfterCommit) -> None:
    profile = _profile_by_customer(db, id_of(provider_subscription.get("customer")))
    if not profile:
        logger.warning(
            "[Stripe webhook] No profile for customer %s", provider_subscription.get("customer")
        )
        return

    subscription_id = provider_subscription.get("id")
    row = db.query(Subscription).filter(Subscription.user_id == profile.id).first()
    if row is not None and row.stripe_subscription_id and row.stripe_subscription_id != subscription_id:
        # Events for a replaced subscription must not touch the live one
        logger.info(
            "[Stripe webhook] Ignoring event for subscription %s; user %s is on %s",
            subscription_id, profile.id, row.stripe_subscription_id,
        )
        return

    plan = _plan_by_price(db, _first_price_id(provider_subscription))
    current = SubscriptionState.from_row(row)
    new_state = next_subscription_state(current, provider_subscription, plan.id if plan else None, event_created)
    if new_state is current:
        logger.info(
            "[Stripe webhook] Ignoring stale event for subscription %s", provider_subscription.get("id")
        )
        return

    if row is None:
        row = Subscription(user_id=profile.id)
        db.add(row)
    new_state.apply_to(row)
    logger.info("[Stripe webhook] Subscription %s is now %s", row.stripe_subscription_id, row.status)


def handle_subscription_deleted(db: Session, provider_subscription: Dict[str, Any], event_created, after_commit: AfterCommit) -> None:
    subscription_id = provider_subscription.get("id")
    row = None
    if subscription_id:
        row = (
            db.query(Subscription)
            .filter(Subscription.stripe_subscription_id == subscription_id)
            .first()
        )
    if row is None:
        logger.warning("[Stripe webhook] Deleted subscription %s not found", subscription_id)
        return

    row.status = "canceled"
    row.canceled_at = utcnow()
    row.cancel_at_period_end = False
    last_event_at = SubscriptionState.from_row(row).last_event_at
    if event_created is not None and (last_event_at is None or event_created > last_event_at):
        row.last_event_at = event_created

    profile = db.query(Profile).filter(Profile.id == row.user_id).first()
    if profile is not None:
        _set_role(profile, "user")

    activity_log.record(
        db,
        row.user_id,
        "subscription_canceled",
        resource_type="subscription",
        resource_id=row.id,
        details={"stripe_subscription_id": provider_subscription.get("id")},
    )
    logger.info("[Stripe webhook] Subscription %s canceled", provider_subscription.get("id"))


def handle_invoice_paid(db: Session, invoice: Dict[str, Any], event_created, after_commit: AfterCommit) -> None:
    subscription_id = _invoice_subscription_id(invoice)
    if not subscription_id:
        logger.info("[Stripe webhook] Invoice %s is not for a subscription", invoice.get("id"))
        return

    profile = _profile_by_customer(db, id_of(invoice.get("customer")))
    if not profile:
        logger.warning("[Stripe webhook] No profile for customer %s", invoice.get("customer"))
        return

    row = (
        db.query(Subscription)
        .filter(Subscription.stripe_subscription_id == subscription_id)
        .first()
    ) or db.query(Subscription).filter(Subscription.user_id == profile.id).first()
    if row is not None:
        row.analyses_used = 0
        row.status = "active"

    # The only place the monthly counter is reset
    profile.analyses_this_month = 0

    amount = Decimal(invoice.get("amount_paid") or 0) / 100
    currency = invoice.get("currency") or "usd"
    lines = (invoice.get("lines") or {}).get("data") or []
    line_description = lines[0].get("description") if lines else None
    db.add(Payment(
        user_id=profile.id,
        stripe_invoice_id=invoice.get("id"),
        stripe_payment_intent_id=id_of(invoice.get("payment_intent")),
        amount=amount,
        currency=currency,
        status="succeeded",
        description=f"Subscription payment - {line_description or 'Monthly'}",
    ))

    email = profile.email
    invoice_url = invoice.get("hosted_invoice_url")
    paid_at = from_timestamp((invoice.get("status_transitions") or {}).get("paid_at")) or utcnow()
    after_commit.append(
        lambda: billing_email.send_payment_receipt(email, amount, currency, invoice_url, paid_at)
    )
    logger.info("[Stripe webhook] Invoice %s paid; usage reset for user %s", invoice.get("id"), profile.id)


def handle_payment_failed(db: Session, invoice: Dict[str, Any], event_created, after_commit: AfterCommit) -> None:
    profile = _profile_by_customer(db, id_of(invoice.get("customer")))
    if not profile:
        logger.warning("[Stripe webhook] No profile for customer %s", invoice.get("customer"))
        return

    subscription_id = _invoice_subscription_id(invoice)
    if subscription_id:
        row = (
            db.query(Subscription)
            .filter(Subscription.stripe_subscription_id == subscription_id)
            .first()
        )
        if row is not None:
            row.status = "past_due"

    amount_due = Decimal(invoice.get("amount_due") or 0) / 100
    currency = invoice.get("currency") or "usd"

    notification_store.create(
        db,
        profile.id,
        type="payment_failed",
        title="Payment Failed",
        message=PAYMENT_FAILED_MESSAGE,
        priority="high",
        action_url="/dashboard/settings?tab=billing",
        action_text="Update Payment Method",
    )
    activity_log.record(
        db,
        profile.id,
        "payment_failed",
        resource_type="invoice",
        resource_id=invoice.get("id"),
        details={"invoice_id": invoice.get("id"), "amount_due": float(amount_due)},
    )

    email = profile.email
    after_commit.append(lambda: billing_email.send_payment_failed(email, amount_due, currency))
    logger.warning("[Stripe webhook] Payment failed for user %s (invoice %s)", profile.id, invoice.get("id"))


EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_completed,
    "customer.subscription.created": handle_subscription_changed,
    "customer.subscription.updated": handle_subscription_changed,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.paid": handle_invoice_paid,
    "invoice.payment_failed": handle_payment_failed,
}


def process_event(db: Session, event: Dict[str, Any]) -> str:
    """
    Apply one verified event. Returns "processed", "duplicate" or "ignored".
    Raises on database errors after rolling back.
    """
    event_id = event.get("id")
    event_type = event.get("type")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info("[Stripe webhook] Unhandled event type %s", event_type)
        return "ignored"

    if event_id and db.query(WebhookEvent).filter(WebhookEvent.id == event_id).first():
        logger.info("[Stripe webhook] Event %s already processed", event_id)
        return "duplicate"

    obj = (event.get("data") or {}).get("object") or {}
    after_commit: AfterCommit = []
    try:
        handler(db, obj, from_timestamp(event.get("created")), after_commit)
        if event_id:
            db.add(WebhookEvent(id=event_id, type=event_type))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("[Stripe webhook] Failed to process %s (%s)", event_type, event_id)
        raise

    for send in after_commit:
        send()
    return "processed"
