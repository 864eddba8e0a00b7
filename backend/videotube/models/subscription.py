"""Subscription edge model (subscriber -> channel)"""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.sql import func
from videotube.core.database import Base


class Subscription(Base):
    """Directed edge: `subscriber_id` follows the channel `channel_id`"""

    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    subscriber_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    channel_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscription_edge"),
        Index("idx_subscriptions_channel", "channel_id"),
        Index("idx_subscriptions_subscriber", "subscriber_id"),
    )
