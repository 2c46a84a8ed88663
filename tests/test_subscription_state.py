from datetime import datetime, timedelta, timezone

from autowhiz.services.subscription_state import SubscriptionState, next_subscription_state, period_bounds

T0 = datetime(2026, 9, 1, 12, 0, tzinfo=timezone.utc)


def _provider(status="active", **extra):
    data = {
        "id": "sub_123",
        "customer": "cus_123",
        "status": status,
        "current_period_start": int(T0.timestamp()),
        "current_period_end": int((T0 + timedelta(days=30)).timestamp()),
        "cancel_at_period_end": False,
    }
    data.update(extra)
    return data


def test_new_subscription_from_empty_state():
    state = next_subscription_state(SubscriptionState(), _provider("trialing"), "plan-pro", T0)
    assert state.status == "trialing"
    assert state.plan_id == "plan-pro"
    assert state.stripe_subscription_id == "sub_123"
    assert state.current_period_start == T0
    assert state.current_period_end == T0 + timedelta(days=30)
    assert state.last_event_at == T0


def test_status_is_mapped():
    current = SubscriptionState(status="active")
    state = next_subscription_state(current, _provider("incomplete_expired"), None, T0)
    assert state.status == "canceled"


def test_older_event_is_ignored():
    current = SubscriptionState(status="active", plan_id="plan-pro", last_event_at=T0)
    state = next_subscription_state(current, _provider("past_due"), "plan-basic", T0 - timedelta(seconds=5))
    assert state is current


def test_newer_event_wins_and_keeps_plan_when_price_unknown():
    current = SubscriptionState(status="active", plan_id="plan-pro", last_event_at=T0)
    state = next_subscription_state(
        current, _provider("past_due", cancel_at_period_end=True), None, T0 + timedelta(minutes=1)
    )
    assert state.status == "past_due"
    assert state.plan_id == "plan-pro"
    assert state.cancel_at_period_end is True
    assert state.last_event_at == T0 + timedelta(minutes=1)


def test_period_bounds_fall_back_to_subscription_items():
    provider = {
        "status": "active",
        "items": {"data": [{"current_period_start": 1767225600, "current_period_end": 1769904000}]},
    }
    start, end = period_bounds(provider)
    assert start == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert end == datetime(2026, 2, 1, tzinfo=timezone.utc)


def test_unknown_status_passes_through():
    state = next_subscription_state(SubscriptionState(), _provider("brand_new_status"), None, T0)
    assert state.status == "brand_new_status"


def test_expanded_customer_is_reduced_to_its_id():
    provider = _provider(customer={"id": "cus_456", "object": "customer"})
    state = next_subscription_state(SubscriptionState(), provider, None, T0)
    assert state.stripe_customer_id == "cus_456"
