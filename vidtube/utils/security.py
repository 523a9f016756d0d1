"""Password hashing and JWT helpers."""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import uuid

import jwt
from werkzeug.security import generate_password_hash, check_password_hash

from vidtube.config import settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """Hash a plain-text password for storage."""
    return generate_password_hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Check a plain-text password against its stored hash."""
    if not password or not hashed_password:
        return False
    return check_password_hash(hashed_password, password)


def _encode(claims: Dict[str, Any], secret: str, expires_delta: timedelta, token_type: str) -> str:
    now = datetime.utcnow()
    payload = dict(claims)
    payload.update({
        "type": token_type,
        "jti": uuid.uuid4().hex,  # two tokens minted in the same second must still differ
        "iat": now,
        "exp": now + expires_delta
    })
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def _decode(token: str, secret: str, token_type: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    if payload.get("type") != token_type or not payload.get("sub"):
        return None
    return payload


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a short-lived access token.

    Args:
        data: Claims to embed; must contain "sub" (the user id)
        expires_delta: Override of the configured lifetime

    Returns:
        Encoded JWT
    """
    return _encode(
        data,
        settings.ACCESS_TOKEN_SECRET,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        ACCESS_TOKEN_TYPE
    )


def create_refresh_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived, single-use refresh token."""
    return _encode(
        data,
        settings.REFRESH_TOKEN_SECRET,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        REFRESH_TOKEN_TYPE
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid access token, or None."""
    return _decode(token, settings.ACCESS_TOKEN_SECRET, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid refresh token, or None."""
    return _decode(token, settings.REFRESH_TOKEN_SECRET, REFRESH_TOKEN_TYPE)
