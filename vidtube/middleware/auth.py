"""Authentication dependency for protected routes."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from vidtube.database import get_db
from vidtube.exceptions import UnauthorizedError
from vidtube.models.user import User
from vidtube.utils.security import decode_access_token

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# Missing headers fall through to the access token cookie
security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user.

    Usage in routes:
        @router.get("/protected")
        def protected_route(current_user: User = Depends(get_current_user)):
            return {"user": current_user.username}

    The access token is read from ``Authorization: Bearer <token>`` or,
    failing that, from the ``accessToken`` cookie.

    Args:
        request: Incoming request, for the cookie
        credentials: HTTP Authorization header with Bearer token
        db: Database session

    Returns:
        Current user

    Raises:
        UnauthorizedError: If the token is missing, invalid or names no user
    """
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise UnauthorizedError("Unauthorized request")

    payload = decode_access_token(token)
    if payload is None:
        raise UnauthorizedError("Invalid access token")

    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError:
        raise UnauthorizedError("Invalid access token")

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("Invalid access token")

    return user
