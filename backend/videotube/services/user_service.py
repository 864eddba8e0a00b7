"""User service - credential store and account management"""

from sqlalchemy import or_, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from videotube.models.user import User
from videotube.models.video import Video, WatchHistoryEntry
from videotube.core.security import get_password_hash, verify_password
from videotube.core.exceptions import (
    BadRequestError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from videotube.services.media_storage import MediaStorage, media_storage
import logging

logger = logging.getLogger(__name__)


def normalize_username(username: Optional[str]) -> Optional[str]:
    if username is None:
        return None
    return username.strip().lower()


def normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    return email.strip().lower()


class UserService:
    """Service for user records and account operations"""

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_username(db: Session, username: str) -> Optional[User]:
        """Get user by username (stored lowercase, matched case-insensitively)"""
        return db.query(User).filter(User.username == normalize_username(username)).first()

    @staticmethod
    def find_by_username_or_email(
        db: Session,
        username: Optional[str] = None,
        email: Optional[str] = None
    ) -> Optional[User]:
        """
        Point lookup by username OR email

        Only the identifiers actually supplied take part in the match.
        """
        conditions = []
        if username:
            conditions.append(User.username == normalize_username(username))
        if email:
            conditions.append(User.email == normalize_email(email))
        if not conditions:
            return None
        return db.query(User).filter(or_(*conditions)).first()

    @staticmethod
    def register_user(
        db: Session,
        full_name: Optional[str],
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        avatar_path: Optional[str],
        cover_image_path: Optional[str] = None,
        storage: MediaStorage = media_storage,
    ) -> User:
        """
        Create a new user

        Args:
            db: Database session
            full_name, email, username, password: Required, non-blank
            avatar_path: Local path of the uploaded avatar (required)
            cover_image_path: Local path of the uploaded cover image
            storage: Object storage receiving the images

        Returns:
            Created user
        """
        if any(field is None or not field.strip() for field in (full_name, email, username, password)):
            raise BadRequestError("All fields are required")

        username = normalize_username(username)
        email = normalize_email(email)
        if "@" not in email:
            raise BadRequestError("Invalid email address")

        existing = UserService.find_by_username_or_email(db, username=username, email=email)
        if existing:
            raise ResourceAlreadyExistsError("User", "User with email or username already exists")

        if not avatar_path:
            raise BadRequestError("Avatar file is required")

        avatar = storage.upload(avatar_path)
        cover_image = storage.upload(cover_image_path) if cover_image_path else None

        if not avatar.ok:
            logger.warning(f"Avatar upload failed during registration: {avatar.reason}")
            raise BadRequestError("Avatar file is required")

        user = User(
            full_name=full_name.strip(),
            email=email,
            username=username,
            password_hash=get_password_hash(password),
            avatar_url=avatar.url,
            cover_image_url=cover_image.url if cover_image and cover_image.ok else None,
        )

        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration
            db.rollback()
            raise ResourceAlreadyExistsError("User", "User with email or username already exists")
        db.refresh(user)

        logger.info(f"Registered user: {user.username} (id={user.id})")
        return user

    @staticmethod
    def _update_fields(db: Session, user_id: int, **fields) -> User:
        """Field-scoped update that skips whole-record validation"""
        result = db.execute(
            update(User)
            .where(User.id == user_id)
            .values(**fields)
        )
        if result.rowcount == 0:
            db.rollback()
            raise ResourceNotFoundError("User")
        db.commit()
        return UserService.get_user_by_id(db, user_id)

    @staticmethod
    def update_account_details(
        db: Session,
        user_id: int,
        full_name: Optional[str],
        email: Optional[str]
    ) -> User:
        """Replace full name and email"""
        if not full_name or not full_name.strip() or not email or not email.strip():
            raise BadRequestError("All fields are required")

        email = normalize_email(email)
        if "@" not in email:
            raise BadRequestError("Invalid email address")

        taken = db.query(User).filter(User.email == email, User.id != user_id).first()
        if taken:
            raise ResourceAlreadyExistsError("User", "Email is already in use")

        try:
            return UserService._update_fields(db, user_id, full_name=full_name.strip(), email=email)
        except IntegrityError:
            db.rollback()
            raise ResourceAlreadyExistsError("User", "Email is already in use")

    @staticmethod
    def update_avatar(
        db: Session,
        user_id: int,
        local_path: Optional[str],
        storage: MediaStorage = media_storage,
    ) -> User:
        """Upload a new avatar and point the user record at it"""
        if not local_path:
            raise BadRequestError("Avatar file is missing")

        avatar = storage.upload(local_path)
        if not avatar.ok:
            logger.warning(f"Avatar upload failed for user {user_id}: {avatar.reason}")
            raise BadRequestError("Error while uploading the avatar")

        return UserService._update_fields(db, user_id, avatar_url=avatar.url)

    @staticmethod
    def update_cover_image(
        db: Session,
        user_id: int,
        local_path: Optional[str],
        storage: MediaStorage = media_storage,
    ) -> User:
        """Upload a new cover image and point the user record at it"""
        if not local_path:
            raise BadRequestError("Cover image file is missing")

        cover_image = storage.upload(local_path)
        if not cover_image.ok:
            logger.warning(f"Cover image upload failed for user {user_id}: {cover_image.reason}")
            raise BadRequestError("Error while uploading the cover image")

        return UserService._update_fields(db, user_id, cover_image_url=cover_image.url)

    @staticmethod
    def check_password(user: User, password: Optional[str]) -> bool:
        """Opaque password check against the stored hash"""
        return verify_password(password or "", user.password_hash)

    @staticmethod
    def set_password(db: Session, user_id: int, new_password: str) -> None:
        """Hash and store a new password"""
        UserService._update_fields(db, user_id, password_hash=get_password_hash(new_password))

    @staticmethod
    def set_refresh_token_hash(
        db: Session,
        user_id: int,
        new_hash: Optional[str],
        expected_hash: Optional[str] = None,
    ) -> bool:
        """
        Store the current refresh-token digest without committing

        When `expected_hash` is given the write is a compare-and-swap: it only
        applies if the stored digest still equals `expected_hash`.

        Returns:
            True if a row was updated
        """
        stmt = update(User).where(User.id == user_id)
        if expected_hash is not None:
            stmt = stmt.where(User.refresh_token_hash == expected_hash)
        result = db.execute(stmt.values(refresh_token_hash=new_hash))
        return result.rowcount > 0

    @staticmethod
    def append_to_watch_history(db: Session, user_id: int, video_id: int) -> WatchHistoryEntry:
        """Append a video to the end of the user's watch history"""
        if not db.query(Video.id).filter(Video.id == video_id).first():
            raise ResourceNotFoundError("Video")

        last_position = (
            db.query(func.max(WatchHistoryEntry.position))
            .filter(WatchHistoryEntry.user_id == user_id)
            .scalar()
        )
        entry = WatchHistoryEntry(
            user_id=user_id,
            video_id=video_id,
            position=(last_position or 0) + 1,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def get_watch_history_ids(db: Session, user_id: int) -> List[int]:
        """Stored watch history as video ids, oldest first"""
        rows = (
            db.query(WatchHistoryEntry.video_id)
            .filter(WatchHistoryEntry.user_id == user_id)
            .order_by(WatchHistoryEntry.position.asc())
            .all()
        )
        return [row.video_id for row in rows]


# Singleton instance
user_service = UserService()
