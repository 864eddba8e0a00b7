"""Subscription relation queries (read-only from the identity core)"""

from sqlalchemy.orm import Session
from typing import Optional
from videotube.models.subscription import Subscription


class SubscriptionService:
    """Edge-count and edge-membership queries over subscriber -> channel edges"""

    @staticmethod
    def count_subscribers(db: Session, channel_id: int) -> int:
        """Number of edges pointing at the channel"""
        return db.query(Subscription).filter(Subscription.channel_id == channel_id).count()

    @staticmethod
    def count_subscriptions(db: Session, subscriber_id: int) -> int:
        """Number of channels the user subscribes to"""
        return db.query(Subscription).filter(Subscription.subscriber_id == subscriber_id).count()

    @staticmethod
    def is_subscribed(db: Session, subscriber_id: Optional[int], channel_id: int) -> bool:
        """Whether the edge subscriber -> channel exists; anonymous viewers never subscribe"""
        if subscriber_id is None:
            return False
        query = db.query(Subscription.id).filter(
            Subscription.subscriber_id == subscriber_id,
            Subscription.channel_id == channel_id,
        )
        return db.query(query.exists()).scalar()


subscription_service = SubscriptionService()
