"""Database models"""

from videotube.models.user import User
from videotube.models.video import Video, WatchHistoryEntry
from videotube.models.subscription import Subscription

__all__ = ["User", "Video", "WatchHistoryEntry", "Subscription"]
