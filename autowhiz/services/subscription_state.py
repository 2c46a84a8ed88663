"""
Pure subscription state transition for Stripe subscription events.

Kept free of database and Stripe calls so that ordering rules (stale events are
ignored) can be tested directly.
"""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from autowhiz.core.plan_limits import map_stripe_status


@dataclass(frozen=True)
class SubscriptionState:
    status: str = "incomplete"
    plan_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    canceled_at: Optional[datetime] = None
    last_event_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "SubscriptionState":
        if row is None:
            return cls()
        return cls(
            status=row.status,
            plan_id=row.plan_id,
            stripe_subscription_id=row.stripe_subscription_id,
            stripe_customer_id=row.stripe_customer_id,
            current_period_start=_aware(row.current_period_start),
            current_period_end=_aware(row.current_period_end),
            cancel_at_period_end=bool(row.cancel_at_period_end),
            canceled_at=_aware(row.canceled_at),
            last_event_at=_aware(row.last_event_at),
        )

    def apply_to(self, row) -> None:
        for name in self.__dataclass_fields__:
            setattr(row, name, getattr(self, name))


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def id_of(value) -> Optional[str]:
    """Stripe sends either an id or the expanded object."""
    if isinstance(value, dict):
        return value.get("id")
    return value


def from_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def period_bounds(provider_subscription: Dict[str, Any]):
    """Current period start/end. Newer Stripe API versions moved them onto the items."""
    start = provider_subscription.get("current_period_start")
    end = provider_subscription.get("current_period_end")
    if start is None or end is None:
        items = (provider_subscription.get("items") or {}).get("data") or []
        if items:
            start = start if start is not None else items[0].get("current_period_start")
            end = end if end is not None else items[0].get("current_period_end")
    return from_timestamp(start), from_timestamp(end)


def next_subscription_state(
    current: SubscriptionState,
    provider_subscription: Dict[str, Any],
    plan_id: Optional[str],
    event_created: Optional[datetime],
) -> SubscriptionState:
    """
    State after applying a customer.subscription.created/updated event.

    An event older than the newest one already applied returns `current` unchanged.
    A missing plan keeps the current plan.
    """
    if (
        event_created is not None
        and current.last_event_at is not None
        and event_created < current.last_event_at
    ):
        return current

    start, end = period_bounds(provider_subscription)
    return replace(
        current,
        status=map_stripe_status(provider_subscription.get("status") or current.status),
        plan_id=plan_id or current.plan_id,
        stripe_subscription_id=provider_subscription.get("id") or current.stripe_subscription_id,
        stripe_customer_id=id_of(provider_subscription.get("customer")) or current.stripe_customer_id,
        current_period_start=start or current.current_period_start,
        current_period_end=end or current.current_period_end,
        cancel_at_period_end=bool(provider_subscription.get("cancel_at_period_end", False)),
        last_event_at=event_created or current.last_event_at,
    )
