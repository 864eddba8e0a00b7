"""Video relation queries"""

from sqlalchemy.orm import Session, joinedload
from typing import Dict, Iterable
from videotube.models.video import Video


class VideoService:
    """Batch resolution of videos together with their owners"""

    @staticmethod
    def get_videos_by_ids(db: Session, video_ids: Iterable[int]) -> Dict[int, Video]:
        """
        Resolve videos by id in a single query

        Args:
            db: Database session
            video_ids: Ids to resolve; duplicates are fine

        Returns:
            Mapping of id to Video with `owner` eagerly loaded; unknown ids are absent
        """
        ids = set(video_ids)
        if not ids:
            return {}
        videos = (
            db.query(Video)
            .options(joinedload(Video.owner))
            .filter(Video.id.in_(ids))
            .all()
        )
        return {video.id: video for video in videos}


video_service = VideoService()
