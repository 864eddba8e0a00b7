"""User model"""

from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from videotube.core.database import Base


class User(Base):
    """Identity record: credentials, profile media and the current refresh-token digest"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    avatar_url = Column(String(1024), nullable=False)
    cover_image_url = Column(String(1024), nullable=True)
    # Digest of the most recently issued refresh token; NULL when logged out
    refresh_token_hash = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    videos = relationship("Video", back_populates="owner", cascade="all, delete-orphan")
    watch_history_entries = relationship(
        "WatchHistoryEntry",
        order_by="WatchHistoryEntry.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index('idx_users_username', 'username'),
        Index('idx_users_email', 'email'),
    )

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
