"""API dependencies - authentication gate"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from videotube.core.database import get_db
from videotube.core.security import decode_access_token
from videotube.core.exceptions import AuthenticationError
from videotube.models.user import User
from videotube.services.user_service import user_service

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

# HTTP Bearer token scheme; the cookie is tried first
security = HTTPBearer(auto_error=False)


def _extract_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    if credentials:
        return credentials.credentials
    return None


def _resolve_user(db: Session, token: Optional[str]) -> User:
    if not token:
        raise AuthenticationError("Unauthorized request")

    payload = decode_access_token(token)
    if not payload:
        raise AuthenticationError("Invalid or expired access token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")

    user = user_service.get_user_by_id(db, user_id)
    if not user:
        raise AuthenticationError("Invalid access token")
    return user


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from the access token

    Args:
        request: Incoming request (cookie source)
        credentials: HTTP Bearer credentials
        db: Database session

    Returns:
        Current user

    Raises:
        AuthenticationError: If token is missing, invalid or user not found
    """
    return _resolve_user(db, _extract_access_token(request, credentials))


def get_optional_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Current user if the request carries a valid access token, None otherwise"""
    token = _extract_access_token(request, credentials)
    if not token:
        return None
    try:
        return _resolve_user(db, token)
    except AuthenticationError:
        return None
