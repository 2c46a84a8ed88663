import re
import time

import jwt
import pytest

from autowhiz.core.config import settings
from autowhiz.core.errors import AuthError
from autowhiz.dependencies.auth import verify_supabase_token
from autowhiz.models import Profile

NEW_USER_ID = "33333333-3333-3333-3333-333333333333"


def _token(sub=NEW_USER_ID, expires_in=3600, secret=None, **claims):
    payload = {
        "sub": sub,
        "email": "new@example.com",
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(time.time()) + expires_in,
        **claims,
    }
    return jwt.encode(payload, secret or settings.SUPABASE_JWT_SECRET, algorithm="HS256")


def test_valid_hs256_token():
    claims = verify_supabase_token(f"Bearer {_token()}")
    assert claims["sub"] == NEW_USER_ID


@pytest.mark.parametrize("header, message", [
    (None, "Missing authorization header"),
    ("Token abc", "Invalid header format. Expected 'Bearer <token>'"),
    ("Bearer null", "Missing token"),
    ("Bearer abc.def", "Invalid token format"),
])
def test_malformed_headers(header, message):
    with pytest.raises(AuthError, match=re.escape(message)):
        verify_supabase_token(header)


def test_expired_token():
    with pytest.raises(AuthError, match="Invalid or expired token"):
        verify_supabase_token(f"Bearer {_token(expires_in=-60)}")


def test_wrong_secret():
    with pytest.raises(AuthError):
        verify_supabase_token(f"Bearer {_token(secret='another-secret-that-is-long-enough-0123')}")


def test_wrong_audience():
    with pytest.raises(AuthError):
        verify_supabase_token(f"Bearer {_token(aud='anon')}")


def test_first_request_creates_profile(anon_client, db_session):
    response = anon_client.get("/user", headers={"Authorization": f"Bearer {_token()}"})
    assert response.status_code == 200
    assert response.json()["data"]["profile"]["email"] == "new@example.com"
    profile = db_session.get(Profile, NEW_USER_ID)
    assert profile.role == "user"
    assert profile.analyses_this_month == 0


def test_soft_deleted_profile_is_unauthenticated(anon_client, db_session):
    headers = {"Authorization": f"Bearer {_token()}"}
    anon_client.request("DELETE", "/user", json={"confirmation": "DELETE MY ACCOUNT"}, headers=headers)

    response = anon_client.get("/user", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Account has been deleted"}


def test_health(anon_client):
    assert anon_client.get("/health").json()["status"] == "ok"
