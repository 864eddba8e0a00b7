"""Video and watch-history models"""

from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from videotube.core.database import Base


class Video(Base):
    """Uploaded video owned by a channel (user)"""

    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    video_file_url = Column(String(1024), nullable=False)
    thumbnail_url = Column(String(1024), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    duration = Column(Float, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="videos")

    __table_args__ = (
        Index("idx_videos_owner", "owner_id"),
    )

    def __repr__(self):
        return f"<Video(id={self.id}, title='{self.title}')>"


class WatchHistoryEntry(Base):
    """One position in a user's ordered watch history"""

    __tablename__ = "watch_history_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    video_id = Column(Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    watched_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_watch_history_user_position", "user_id", "position", unique=True),
    )
