import uuid
from sqlalchemy import (
    Column, String, Integer, DateTime, JSON, ForeignKey, Uuid, Index, CheckConstraint
)
from .base import Base, TimestampMixin
from .enums import RewardStatus


class ReviewReward(Base, TimestampMixin):
    """Награда за отзыв (ровно одна на отзыв)"""
    __tablename__ = "review_rewards"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    review_id = Column(Uuid, ForeignKey("reviews.id"), nullable=False, unique=True)
    coins_amount = Column(Integer, nullable=False)
    rupees_value = Column(Integer, nullable=False)  # 1 монета = 1 рупия
    status = Column(String(20), default=RewardStatus.PENDING.value, nullable=False, index=True)
    credited_at = Column(DateTime)
    expires_at = Column(DateTime, index=True)
    # device_fingerprint, ip_address, random_seed
    meta = Column("metadata", JSON, default=dict, nullable=False)

    __table_args__ = (
        CheckConstraint("coins_amount >= 1 AND coins_amount <= 100", name="ck_review_rewards_amount"),
        Index("idx_reward_user_date", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<ReviewReward(review_id={self.review_id}, coins={self.coins_amount}, status={self.status})>"
