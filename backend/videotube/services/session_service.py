"""Session service - login, refresh, logout and password change"""

from sqlalchemy.orm import Session
from typing import Optional, Tuple
from videotube.models.user import User
from videotube.services.user_service import user_service
from videotube.services.token_service import token_service
from videotube.core.exceptions import (
    BadRequestError,
    InvalidCredentialsError,
    ResourceNotFoundError,
)
import logging

logger = logging.getLogger(__name__)


class SessionService:
    """Moves a user between anonymous and authenticated sessions"""

    @staticmethod
    def login(
        db: Session,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str]
    ) -> Tuple[User, str, str]:
        """
        Authenticate by username or email and issue a token pair

        Args:
            db: Database session
            username: Username (either this or email is required)
            email: Email address
            password: Plain text password

        Returns:
            Tuple of (user, access token, refresh token)
        """
        if not username and not email:
            raise BadRequestError("Username or email is required")

        user = user_service.find_by_username_or_email(db, username=username, email=email)
        if not user:
            raise ResourceNotFoundError("User", "User does not exist")

        if not user_service.check_password(user, password):
            logger.info(f"Failed login for user id={user.id}")
            raise InvalidCredentialsError()

        access_token, refresh_token = token_service.issue_token_pair(db, user.id)
        db.refresh(user)

        logger.info(f"User logged in: id={user.id}")
        return user, access_token, refresh_token

    @staticmethod
    def refresh(db: Session, incoming_refresh_token: Optional[str]) -> Tuple[str, str]:
        """
        Exchange a refresh token for a new pair

        Rejections keep their specific message so the client can tell a
        stale token (log in again) from a server failure (retry).
        """
        user_id = token_service.validate_refresh_token(db, incoming_refresh_token)
        access_token, refresh_token = token_service.rotate(db, user_id, incoming_refresh_token)

        logger.info(f"Session refreshed for user id={user_id}")
        return access_token, refresh_token

    @staticmethod
    def logout(db: Session, user_id: int) -> None:
        """Drop the stored refresh token; the caller is already authenticated"""
        token_service.revoke(db, user_id)
        logger.info(f"User logged out: id={user_id}")

    @staticmethod
    def change_password(
        db: Session,
        user: User,
        old_password: str,
        new_password: str
    ) -> None:
        """Replace the password after verifying the current one"""
        if not user_service.check_password(user, old_password):
            raise BadRequestError("Invalid old password")

        user_service.set_password(db, user.id, new_password)
        logger.info(f"Password changed for user id={user.id}")


session_service = SessionService()
