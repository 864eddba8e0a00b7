"""Session token issuance, validation, rotation and revocation.

The user record holds the digest of exactly one refresh token. Issuing a
pair overwrites it; rotation overwrites it with a compare-and-swap against
the presented token, so of two concurrent refreshes with the same token
only one can win.
"""

from __future__ import annotations

import hmac
import logging
from typing import Optional, Tuple

from prometheus_client import Counter
from sqlalchemy.orm import Session

from videotube.core.exceptions import (
    AuthenticationError,
    RefreshTokenReuseError,
    TokenGenerationError,
)
from videotube.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_refresh_token,
)
from videotube.models.user import User
from videotube.services.user_service import user_service

logger = logging.getLogger(__name__)

TOKEN_EVENTS = Counter(
    "videotube_session_token_events_total",
    "Session token lifecycle events",
    ["event"],
)


class TokenService:
    """Manage the access/refresh token pair of each user."""

    @staticmethod
    def _mint(user: User) -> Tuple[str, str]:
        access_token = create_access_token({
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "full_name": user.full_name,
        })
        refresh_token = create_refresh_token({"sub": str(user.id)})
        return access_token, refresh_token

    @staticmethod
    def issue_token_pair(
        db: Session,
        user_id: int,
        replaces: Optional[str] = None,
    ) -> Tuple[str, str]:
        """
        Mint a new pair and persist the refresh token's digest on the user.

        Args:
            db: Database session
            user_id: Owner of the new pair
            replaces: Refresh token being rotated; the write only applies if
                it is still the stored one

        Raises:
            RefreshTokenReuseError: `replaces` is no longer current
            TokenGenerationError: lookup, signing or persistence failed
        """
        try:
            user = user_service.get_user_by_id(db, user_id)
            if user is None:
                raise LookupError(f"user {user_id} does not exist")

            access_token, refresh_token = TokenService._mint(user)
            expected_hash = hash_refresh_token(replaces) if replaces is not None else None
            swapped = user_service.set_refresh_token_hash(
                db,
                user.id,
                hash_refresh_token(refresh_token),
                expected_hash=expected_hash,
            )
            if not swapped:
                db.rollback()
                TOKEN_EVENTS.labels("reuse_rejected").inc()
                logger.warning(f"Refresh token for user {user_id} was superseded before rotation")
                raise RefreshTokenReuseError()
            db.commit()
        except AuthenticationError:
            raise
        except Exception as exc:
            db.rollback()
            TOKEN_EVENTS.labels("issue_failed").inc()
            logger.error(f"Token issuance failed for user {user_id}: {exc}")
            raise TokenGenerationError()

        TOKEN_EVENTS.labels("rotated" if replaces is not None else "issued").inc()
        return access_token, refresh_token

    @staticmethod
    def validate_refresh_token(db: Session, refresh_token: Optional[str]) -> int:
        """
        Check a presented refresh token and return its user id.

        Stages: signature and expiry, owner exists, token is the stored one.

        Raises:
            AuthenticationError: with the specific cause of the rejection
        """
        if not refresh_token:
            raise AuthenticationError("Unauthorized request")

        payload = decode_refresh_token(refresh_token)
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise AuthenticationError("Invalid refresh token")

        user = user_service.get_user_by_id(db, user_id)
        if user is None:
            raise AuthenticationError("Invalid refresh token")

        stored = user.refresh_token_hash
        if not stored or not hmac.compare_digest(stored, hash_refresh_token(refresh_token)):
            TOKEN_EVENTS.labels("reuse_rejected").inc()
            logger.warning(f"Rejected stale refresh token for user {user_id}")
            raise RefreshTokenReuseError()

        return user_id

    @staticmethod
    def rotate(db: Session, user_id: int, refresh_token: str) -> Tuple[str, str]:
        """Replace `refresh_token` with a fresh pair; the old token stops working."""
        return TokenService.issue_token_pair(db, user_id, replaces=refresh_token)

    @staticmethod
    def revoke(db: Session, user_id: int) -> None:
        """Forget the stored refresh token so no outstanding one can rotate."""
        user_service.set_refresh_token_hash(db, user_id, None)
        db.commit()
        TOKEN_EVENTS.labels("revoked").inc()


token_service = TokenService()
