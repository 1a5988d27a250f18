"""Bearer-token verification for Supabase-issued JWTs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from mmhealth.core.config import get_settings


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT. Returns None for any invalid or expired token."""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError:
        return None


def get_subject_from_token(token: str) -> Optional[str]:
    """Extract the auth subject (user id) from a token, or None."""
    payload = decode_access_token(token)
    if payload:
        return payload.get("sub")
    return None


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    """Mint a token the way the auth provider does (local development and tests)."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
    claims = {"sub": subject, "aud": settings.jwt_audience, "exp": expire}
    return jwt.encode(claims, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm)
