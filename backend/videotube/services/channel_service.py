"""Channel service - derived profile and watch-history views"""

from sqlalchemy.orm import Session
from typing import List, Optional
from videotube.models.user import User
from videotube.models.video import Video
from videotube.schemas.channel import ChannelProfile, VideoOwner, WatchHistoryItem
from videotube.services.user_service import user_service
from videotube.services.subscription_service import subscription_service
from videotube.services.video_service import video_service
from videotube.core.exceptions import BadRequestError, ResourceNotFoundError
import logging

logger = logging.getLogger(__name__)


class ChannelService:
    """Read-only projections joined at query time, never cached"""

    @staticmethod
    def get_channel_profile(
        db: Session,
        viewer_id: Optional[int],
        username: Optional[str]
    ) -> ChannelProfile:
        """
        Build the channel page for `username` as seen by `viewer_id`

        Counts and the subscription flag are recomputed on every call.

        Args:
            db: Database session
            viewer_id: Requesting user, or None for anonymous viewers
            username: Channel username, matched case-insensitively

        Returns:
            Channel profile
        """
        if not username or not username.strip():
            raise BadRequestError("Username is missing")

        channel = user_service.get_user_by_username(db, username)
        if not channel:
            raise ResourceNotFoundError("Channel", "Channel does not exist")

        return ChannelProfile(
            id=channel.id,
            full_name=channel.full_name,
            username=channel.username,
            email=channel.email,
            avatar_url=channel.avatar_url,
            cover_image_url=channel.cover_image_url,
            subscribers_count=subscription_service.count_subscribers(db, channel.id),
            channels_subscribed_to_count=subscription_service.count_subscriptions(db, channel.id),
            is_subscribed=subscription_service.is_subscribed(db, viewer_id, channel.id),
        )

    @staticmethod
    def _owner_projection(owner: Optional[User]) -> Optional[VideoOwner]:
        if owner is None:
            return None
        return VideoOwner(
            full_name=owner.full_name,
            username=owner.username,
            avatar_url=owner.avatar_url,
        )

    @staticmethod
    def _history_item(video: Video) -> WatchHistoryItem:
        return WatchHistoryItem(
            id=video.id,
            title=video.title,
            description=video.description,
            video_file_url=video.video_file_url,
            thumbnail_url=video.thumbnail_url,
            duration=video.duration,
            views=video.views,
            is_published=video.is_published,
            created_at=video.created_at,
            owner=ChannelService._owner_projection(video.owner),
        )

    @staticmethod
    def get_watch_history(db: Session, user_id: int) -> List[WatchHistoryItem]:
        """
        Resolve the user's stored watch history into enriched videos

        Output order equals stored order. Entries whose video no longer
        exists are skipped.
        """
        if not user_service.get_user_by_id(db, user_id):
            raise ResourceNotFoundError("User")

        video_ids = user_service.get_watch_history_ids(db, user_id)
        videos = video_service.get_videos_by_ids(db, video_ids)

        history = [ChannelService._history_item(videos[vid]) for vid in video_ids if vid in videos]
        if len(history) != len(video_ids):
            logger.debug(f"Skipped {len(video_ids) - len(history)} deleted videos in history of user {user_id}")
        return history


channel_service = ChannelService()
