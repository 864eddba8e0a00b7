"""Derived view schemas: channel profile and watch history"""

from typing import Optional
from datetime import datetime

from videotube.schemas.user import CamelModel


class ChannelProfile(CamelModel):
    """Channel page projection, computed per request"""
    id: int
    full_name: str
    username: str
    email: str
    avatar_url: str
    cover_image_url: Optional[str] = None
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool


class VideoOwner(CamelModel):
    """Reduced owner projection embedded in each history entry"""
    full_name: str
    username: str
    avatar_url: str


class WatchHistoryItem(CamelModel):
    """A watched video with its owner flattened to a single object"""
    id: int
    title: str
    description: str
    video_file_url: str
    thumbnail_url: str
    duration: float
    views: int
    is_published: bool
    created_at: Optional[datetime] = None
    owner: Optional[VideoOwner] = None
