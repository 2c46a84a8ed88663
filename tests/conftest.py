import os

# Settings are read at import time, so the environment must be in place first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_URL"] = "https://project.supabase.co"
os.environ["SUPABASE_JWT_SECRET"] = "test-supabase-jwt-secret-0123456789abcdef"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["CELERY_BROKER_URL"] = ""
os.environ["RESEND_API_KEY"] = ""

import hashlib
import hmac
import json
import time
import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from autowhiz.db.base import Base
from autowhiz.db.session import get_db
from autowhiz.dependencies.auth import RequestContext, get_request_context
from autowhiz.main import app
from autowhiz.models import Profile, SubscriptionPlan

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"
WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def profile(db_session):
    user = Profile(id=USER_ID, email="driver@example.com", full_name="Test Driver", role="user")
    other = Profile(id=OTHER_USER_ID, email="other@example.com", full_name="Other Driver", role="user")
    db_session.add_all([user, other])
    db_session.commit()
    return user


@pytest.fixture
def plans(db_session):
    free = SubscriptionPlan(name="Free", tier="free", price_monthly=Decimal("0"), analyses_per_month=2, sort_order=0)
    pro = SubscriptionPlan(
        name="Pro",
        tier="pro",
        price_monthly=Decimal("19.99"),
        price_yearly=Decimal("199.00"),
        analyses_per_month=10,
        stripe_price_id_monthly="price_pro_monthly",
        stripe_price_id_yearly="price_pro_yearly",
        features={"visual_analysis": True, "history_report": True},
        is_popular=True,
        sort_order=1,
    )
    enterprise = SubscriptionPlan(
        name="Enterprise",
        tier="enterprise",
        price_monthly=Decimal("99.00"),
        analyses_per_month=None,
        stripe_price_id_monthly="price_enterprise_monthly",
        sort_order=2,
    )
    retired = SubscriptionPlan(name="Legacy", tier="starter", is_active=False, sort_order=3)
    db_session.add_all([free, pro, enterprise, retired])
    db_session.commit()
    return {"free": free, "pro": pro, "enterprise": enterprise}


@pytest.fixture
def ctx(profile):
    return RequestContext(user_id=USER_ID, email=profile.email, role=profile.role)


@pytest.fixture
def other_ctx(profile):
    return RequestContext(user_id=OTHER_USER_ID, email="other@example.com")


@pytest.fixture
def client(db_session, ctx):
    """Authenticated as USER_ID."""
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_request_context] = lambda: ctx
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anon_client(db_session):
    """Real auth dependency; only the database is swapped."""
    app.dependency_overrides[get_db] = lambda: db_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{payload}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def send_event(anon_client):
    """Post a signed Stripe event to the webhook endpoint."""

    def _send(event_type, obj, event_id=None, created=None, secret=WEBHOOK_SECRET):
        event = {
            "id": event_id or f"evt_{uuid.uuid4().hex}",
            "object": "event",
            "type": event_type,
            "created": created or int(time.time()),
            "data": {"object": obj},
        }
        payload = json.dumps(event)
        return anon_client.post(
            "/webhooks/stripe",
            content=payload,
            headers={"stripe-signature": sign_payload(payload, secret), "content-type": "application/json"},
        )

    return _send
