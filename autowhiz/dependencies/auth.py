"""
Supabase JWT verification and the request-scoped auth context.

Route handlers depend on `get_request_context`, which returns a RequestContext
carrying the authenticated user id and claims. Nothing auth-related is kept in
module or framework globals apart from the JWKS cache.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import jwt  # PyJWT
import requests
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from autowhiz.core.config import settings
from autowhiz.core.errors import AuthError, InternalError
from autowhiz.db.session import get_db

logger = logging.getLogger(__name__)

# Cache for JWKS (Public Keys)
JWKS_CACHE = None
JWKS_CACHE_TIMESTAMP = None
JWKS_CACHE_TTL = 3600  # Cache for 1 hour


@dataclass(frozen=True)
class RequestContext:
    user_id: str
    email: Optional[str] = None
    role: str = "user"
    claims: Dict[str, Any] = field(default_factory=dict)


def _jwks_url() -> str:
    return f"{settings.SUPABASE_URL}/auth/v1/.well-known/jwks.json"


def get_jwks(force_refresh: bool = False):
    """
    Fetch JWKS from Supabase with caching.
    Only successful fetches are cached so a failure is retried on the next request.
    """
    global JWKS_CACHE, JWKS_CACHE_TIMESTAMP

    if JWKS_CACHE and JWKS_CACHE_TIMESTAMP and not force_refresh:
        if time.time() - JWKS_CACHE_TIMESTAMP < JWKS_CACHE_TTL:
            return JWKS_CACHE

    try:
        r = requests.get(_jwks_url(), timeout=10)
        r.raise_for_status()
        JWKS_CACHE = r.json()
        JWKS_CACHE_TIMESTAMP = time.time()
        logger.info("[AUTH] Fetched JWKS with %d keys", len(JWKS_CACHE.get("keys", [])))
        return JWKS_CACHE
    except requests.exceptions.RequestException as e:
        logger.error("[AUTH] JWKS fetch failed: %s", e)
        return None


def _signing_key_from_jwks(token: str, kid: Optional[str]):
    jwks = get_jwks()
    if not jwks:
        raise AuthError("Authentication service temporarily unavailable")
    for key in jwks.get("keys", []):
        if kid is None or key.get("kid") == kid:
            return jwt.PyJWK(key).key
    # Key rotated since we cached; refresh once
    jwks = get_jwks(force_refresh=True) or {}
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return jwt.PyJWK(key).key
    raise AuthError("Invalid token signature")


def verify_supabase_token(authorization: Optional[str]) -> Dict[str, Any]:
    """
    Verify a Supabase access token from the Authorization header.
    Supports HS256 (shared secret) and ES256/RS256 (JWKS). Returns the claims.
    """
    if not authorization:
        raise AuthError("Missing authorization header")
    if not authorization.startswith("Bearer "):
        raise AuthError("Invalid header format. Expected 'Bearer <token>'")

    token = authorization[len("Bearer "):].strip()
    if not token or token.lower() in ("null", "undefined", "none"):
        raise AuthError("Missing token")
    if len(token.split(".")) != 3:
        raise AuthError("Invalid token format")

    try:
        header = jwt.get_unverified_header(token)
    except jwt.DecodeError as e:
        raise AuthError(f"Invalid token header: {e}")

    algo = header.get("alg")
    if algo == "HS256":
        if not settings.SUPABASE_JWT_SECRET:
            logger.error("[AUTH] SUPABASE_JWT_SECRET is missing")
            raise InternalError("Server misconfiguration: SUPABASE_JWT_SECRET not set")
        key = settings.SUPABASE_JWT_SECRET
    elif algo in ("ES256", "RS256"):
        if not settings.SUPABASE_URL:
            logger.error("[AUTH] SUPABASE_URL is missing for %s verification", algo)
            raise InternalError("Server misconfiguration: SUPABASE_URL not set")
        key = _signing_key_from_jwks(token, header.get("kid"))
    else:
        raise AuthError(f"Unsupported token algorithm: {algo}")

    try:
        return jwt.decode(token, key, algorithms=[algo], audience="authenticated")
    except jwt.PyJWTError as e:
        logger.warning("[AUTH] %s verification failed: %s", algo, e)
        raise AuthError("Invalid or expired token")


def get_request_context(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> RequestContext:
    """
    FastAPI dependency: verify the token and resolve the caller's profile.

    Creates the profile on first sight (the signup trigger may not have run yet)
    and rejects soft-deleted accounts.
    """
    from autowhiz.services.profile_service import get_or_create_profile

    claims = verify_supabase_token(authorization)
    user_id = claims.get("sub")
    if not user_id:
        raise AuthError("Token missing user ID claim")

    profile = get_or_create_profile(db, user_id, claims.get("email"))
    if profile.deleted_at is not None:
        raise AuthError("Account has been deleted")

    return RequestContext(
        user_id=profile.id,
        email=profile.email,
        role=profile.role,
        claims=claims,
    )
