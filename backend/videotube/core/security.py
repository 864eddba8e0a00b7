"""Security utilities - JWT, password hashing, refresh-token digests"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import ExpiredSignatureError, JWTError, jwt
import bcrypt
import hashlib
import hmac
import secrets

from videotube.config import settings
from videotube.core.exceptions import AuthenticationError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password

    Returns:
        bool: True if password matches
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def _encode(
    claims: Dict[str, Any],
    token_type: str,
    secret: str,
    expires_delta: timedelta,
) -> str:
    now = datetime.now(timezone.utc)
    to_encode = claims.copy()
    to_encode.update({
        "typ": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": secrets.token_urlsafe(32)  # Unique token ID
    })
    return jwt.encode(to_encode, secret, algorithm=settings.ALGORITHM)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a short-lived JWT access token

    Args:
        data: Claims to encode; must carry "sub" (the user id)
        expires_delta: Token expiration time

    Returns:
        str: Encoded JWT token
    """
    return _encode(
        data,
        ACCESS_TOKEN_TYPE,
        settings.ACCESS_TOKEN_SECRET,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a long-lived JWT refresh token signed with its own secret

    Args:
        data: Claims to encode; must carry "sub" (the user id)
        expires_delta: Token expiration time

    Returns:
        str: Encoded JWT token
    """
    return _encode(
        data,
        REFRESH_TOKEN_TYPE,
        settings.REFRESH_TOKEN_SECRET,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify an access token

    Args:
        token: JWT token string

    Returns:
        Optional[Dict]: Decoded token data or None if invalid
    """
    try:
        payload = jwt.decode(token, settings.ACCESS_TOKEN_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("typ") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        return None
    return payload


def decode_refresh_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a refresh token.

    Unlike decode_access_token this raises, so callers can surface the
    specific cause to the client.

    Raises:
        AuthenticationError: expired, malformed or wrongly signed token
    """
    try:
        payload = jwt.decode(token, settings.REFRESH_TOKEN_SECRET, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Refresh token has expired")
    except JWTError:
        raise AuthenticationError("Invalid refresh token")
    if payload.get("typ") != REFRESH_TOKEN_TYPE or not payload.get("sub"):
        raise AuthenticationError("Invalid refresh token")
    return payload


def hash_refresh_token(token: str) -> str:
    """
    Return HMAC-SHA256(REFRESH_TOKEN_SECRET, token) as hex.

    Only this digest is persisted on the user record, so a database dump
    does not hand out usable refresh tokens.
    """
    return hmac.new(
        settings.REFRESH_TOKEN_SECRET.encode("utf-8"),
        token.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
